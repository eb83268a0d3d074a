"""Forms for the outings blueprint."""

from wtforms import BooleanField, IntegerField, SelectField, StringField, ValidationError
from wtforms.validators import DataRequired, Optional

from outings.core.constants import REQUEST_STATUSES
from outings.core.forms import ApiForm
from outings.errors import ValidationError as TimeFormatError

from .schedule import parse_time_of_day


class CreateRequestForm(ApiForm):
    """Form for opening an outing request."""

    date = StringField("Date", validators=[DataRequired("Please provide a date.")])
    time = StringField("Time", validators=[DataRequired("Please provide a time.")])

    def validate_time(self, field):
        """Validate that the time is HH:MM."""
        try:
            parse_time_of_day(field.data)
        except TimeFormatError as e:
            raise ValidationError(e.message) from e


class ListRequestsForm(ApiForm):
    """Query-string filters for browsing requests."""

    status = SelectField(
        "Status",
        choices=[("", "")] + [(s, s) for s in REQUEST_STATUSES],
        default="",
        validators=[Optional()],
    )
    date = StringField("Date", validators=[Optional()])
    year = IntegerField("Year", validators=[Optional()])
    semester = IntegerField("Semester", validators=[Optional()])
    excludeOwn = BooleanField("Exclude own", false_values=("false", "0", ""))
