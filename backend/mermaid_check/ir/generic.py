from dataclasses import dataclass

from .base import Diagram


@dataclass(frozen=True)
class GenericDiagram(Diagram):
    """
    Opaque wrapper for headers no dialect parser handles (pie, gantt, erDiagram...).

    The source is kept verbatim and never parsed further.
    """
