"""Base form for JSON API endpoints."""

from flask_wtf import FlaskForm  # type: ignore

from outings.errors import ValidationError


class ApiForm(FlaskForm):
    """A FlaskForm fed from a JSON body or query string.

    Requests are authenticated with bearer tokens rather than cookies, so
    CSRF protection is disabled.
    """

    class Meta:
        csrf = False

    def first_error(self):
        """Return the first field error as ``"field: message"``."""
        for name, errors in self.errors.items():
            if errors:
                return f"{name}: {errors[0]}"
        return "Invalid request."

    def validate_or_raise(self):
        """Validate the form, raising ``ValidationError`` on failure."""
        if not self.validate():
            raise ValidationError(self.first_error())
        return self
