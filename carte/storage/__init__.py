from carte.storage.fields import FormFieldError, SqlFormFieldStore
from carte.storage.protocols import FormFieldGateway

__all__ = ["FormFieldError", "FormFieldGateway", "SqlFormFieldStore"]
