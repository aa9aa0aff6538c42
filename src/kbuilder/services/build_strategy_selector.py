from typing import Sequence

from kbuilder.models.builder_description import BodyKind
from kbuilder.models.type_model import PropertyModel


def select_body_kind(required: Sequence[PropertyModel], optional: Sequence[PropertyModel],
                     optimize_copy: bool) -> BodyKind:
    """Choose the shape of ``build()``; the first matching rule wins.

    1. No optional properties: construct directly from the required ones.
    2. No required properties and ``optimize_copy``: overlay the set fields
       on one shared default instance.
    3. Otherwise: construct from the required properties, then overlay the
       optional ones that were set.
    """
    if not optional:
        return BodyKind.REQUIRED_ONLY
    if not required and optimize_copy:
        return BodyKind.DEFAULT_INSTANCE_OVERLAY
    return BodyKind.REQUIRED_THEN_OVERLAY
