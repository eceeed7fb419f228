from bson import ObjectId
from bson.errors import InvalidId

from app.utils.exceptions import ValidationError


def to_oid(id_str, field: str = "id") -> ObjectId:
    """Convert string to ObjectId and validate."""
    if isinstance(id_str, ObjectId):
        return id_str
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field}")


def fix_object_ids(doc):
    """
    Recursively convert ObjectId fields in a dict or list to strings
    and expose Mongo's `_id` as `id`.
    """
    if isinstance(doc, list):
        return [fix_object_ids(d) for d in doc]
    if isinstance(doc, dict):
        fixed = {k: fix_object_ids(v) for k, v in doc.items()}
        if "_id" in fixed:
            fixed["id"] = fixed.pop("_id")
        return fixed
    if isinstance(doc, ObjectId):
        return str(doc)
    return doc
