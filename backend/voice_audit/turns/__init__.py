from voice_audit.turns.supervisor import SilenceTimer, TurnOutcome, TurnSupervisor, is_apology, next_error_count

__all__ = ["SilenceTimer", "TurnOutcome", "TurnSupervisor", "is_apology", "next_error_count"]
