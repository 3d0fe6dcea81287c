from voice_audit.core.config import AUDIT_CATALOGUE_PATH
from voice_audit.catalogue.models import Catalogue, QuestionKind, QuestionSchema, Stage, load_catalogue
from voice_audit.catalogue.questions import DEFAULT_CATALOGUE, EMAIL_KEY, SOURCE_TAG


def get_catalogue() -> Catalogue:
    if AUDIT_CATALOGUE_PATH:
        return load_catalogue(AUDIT_CATALOGUE_PATH)
    return DEFAULT_CATALOGUE


__all__ = [
    "Catalogue",
    "QuestionKind",
    "QuestionSchema",
    "Stage",
    "load_catalogue",
    "get_catalogue",
    "DEFAULT_CATALOGUE",
    "EMAIL_KEY",
    "SOURCE_TAG",
]
