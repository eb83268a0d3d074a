"""Forms for the location blueprint."""

from wtforms import FloatField, StringField
from wtforms.validators import DataRequired, NumberRange, StopValidation

from outings.core.forms import ApiForm


def number_required(message):
    """Like InputRequired, but lets 0 through."""

    def _check(form, field):
        if field.data is None:
            raise StopValidation(message)

    return _check


class LocationForm(ApiForm):
    """Form for a gate check-in or check-out."""

    groupId = StringField("Group", validators=[DataRequired("Please provide groupId.")])
    latitude = FloatField(
        "Latitude",
        validators=[
            number_required("Please provide latitude."),
            NumberRange(min=-90, max=90),
        ],
    )
    longitude = FloatField(
        "Longitude",
        validators=[
            number_required("Please provide longitude."),
            NumberRange(min=-180, max=180),
        ],
    )
