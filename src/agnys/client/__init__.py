from agnys.client.api import ApiClient, ApiError, AuthEvent
from agnys.client.editable import EditableField, FieldBusyError, FieldState

__all__ = ["ApiClient", "ApiError", "AuthEvent", "EditableField", "FieldBusyError", "FieldState"]
