"""Doctor roster form."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, SubmitField
from wtforms.validators import DataRequired, Length

from chair_app.services.doctors import COLOR_TAGS


class DoctorForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=80)])
    color = SelectField("Color", choices=[("", "auto")] + [(tag, tag) for tag in COLOR_TAGS], default="")
    submit = SubmitField("Add doctor")
