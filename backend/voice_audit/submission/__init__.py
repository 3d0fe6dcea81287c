from voice_audit.submission.pipeline import SubmissionPipeline, SubmissionUpdate, iso_timestamp

__all__ = ["SubmissionPipeline", "SubmissionUpdate", "iso_timestamp"]
