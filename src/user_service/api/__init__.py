from user_service.api.app import create_app, status_for_error

__all__ = ["create_app", "status_for_error"]
