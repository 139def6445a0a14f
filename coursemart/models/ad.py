from datetime import datetime

from sqlalchemy.orm import validates

from coursemart.errors import ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import iso, parse_datetime

AD_TEMPLATES = ("promo", "newCourse", "sale", "event")


class Ad(db.Model):
    __tablename__ = "ad"

    id = db.Column(db.Integer, primary_key=True)
    image = db.Column(db.String(500), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    subtitle = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    link = db.Column(db.String(500))
    category = db.Column(db.String(100), nullable=False, default="general")
    template_id = db.Column(db.String(20), nullable=False, default="newCourse")
    price = db.Column(db.Float)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    target_audience = db.Column(db.String(200))
    cta_text = db.Column(db.String(100))
    priority = db.Column(db.Integer, nullable=False, default=0)
    card_design = db.Column(db.String(50), nullable=False, default="basic")
    layout_hint = db.Column(db.String(50))
    display_priority = db.Column(db.Integer)
    variant = db.Column(db.String(50))
    background_color = db.Column(db.String(30))
    text_color = db.Column(db.String(30))
    custom_styles = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # request key -> column
    FIELDS = {
        "image": "image",
        "title": "title",
        "subtitle": "subtitle",
        "description": "description",
        "link": "link",
        "category": "category",
        "templateId": "template_id",
        "price": "price",
        "startDate": "start_date",
        "endDate": "end_date",
        "targetAudience": "target_audience",
        "ctaText": "cta_text",
        "priority": "priority",
        "cardDesign": "card_design",
        "layoutHint": "layout_hint",
        "displayPriority": "display_priority",
        "variant": "variant",
        "backgroundColor": "background_color",
        "textColor": "text_color",
        "customStyles": "custom_styles",
    }

    @validates("template_id")
    def validate_template_id(self, key, value):
        if value not in AD_TEMPLATES:
            raise ValidationError(
                f"Invalid templateId '{value}'. Use one of: {', '.join(AD_TEMPLATES)}."
            )
        return value

    @validates("start_date", "end_date")
    def validate_dates(self, key, value):
        return parse_datetime(value, key)

    @validates("custom_styles")
    def validate_custom_styles(self, key, value):
        if value is not None and not isinstance(value, dict):
            raise ValidationError("customStyles must be an object.")
        return value

    def to_dict(self):
        data = {"_id": self.id}
        for field, column in self.FIELDS.items():
            value = getattr(self, column)
            data[field] = iso(value) if isinstance(value, datetime) else value
        data["createdAt"] = iso(self.created_at)
        data["updatedAt"] = iso(self.updated_at)
        return data
