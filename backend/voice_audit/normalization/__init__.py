from voice_audit.normalization.candidate import SemanticMapper, parse_candidate
from voice_audit.normalization.closure import close_payload, match_option, name_from_email, parse_boolean

__all__ = [
    "SemanticMapper",
    "parse_candidate",
    "close_payload",
    "match_option",
    "name_from_email",
    "parse_boolean",
]
