"""Forms for the messages blueprint."""

from wtforms import StringField
from wtforms.validators import DataRequired, Length

from outings.core.constants import MESSAGE_MAX_LENGTH
from outings.core.forms import ApiForm


class MessageForm(ApiForm):
    """Form for sending a chat message."""

    groupId = StringField("Group", validators=[DataRequired("Please provide groupId.")])
    text = StringField(
        "Text",
        validators=[
            DataRequired("Please provide message text."),
            Length(max=MESSAGE_MAX_LENGTH),
        ],
    )
