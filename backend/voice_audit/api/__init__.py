from voice_audit.api.routes import router

__all__ = ["router"]
