from .routes import api_bp, get_upload_pipeline

__all__ = ['api_bp', 'get_upload_pipeline']
