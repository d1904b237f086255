"""Query-string schemas for the list endpoints."""

from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


class ListParamsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    # Legacy query names mapped onto field names
    ALIASES = {}

    search = fields.String(load_default=None)
    sort = fields.String(load_default=None)
    order = fields.String(load_default=None)
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    per_page = fields.Integer(load_default=None, validate=validate.Range(min=1, max=100))

    @pre_load
    def normalize(self, data, **kwargs):
        # Query strings send empty values for untouched filters, so blanks
        # are dropped before an alias gets the chance to fill the field.
        data = {key: value for key, value in data.items() if value not in ("", None)}
        for alias, name in self.ALIASES.items():
            value = data.pop(alias, None)
            if value is not None and name not in data:
                data[name] = value
        return data


class ProductParamsSchema(ListParamsSchema):
    ALIASES = {"q": "search", "minPrice": "min_price", "maxPrice": "max_price",
               "category_id": "category"}

    category = fields.String(load_default=None)
    min_price = fields.Float(load_default=None, validate=validate.Range(min=0))
    max_price = fields.Float(load_default=None, validate=validate.Range(min=0))
