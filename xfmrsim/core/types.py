"""xfmrsim.core.types

Закрытые перечисления, которыми индексируются справочные таблицы
(проводник, жидкость, система охлаждения).
"""

from __future__ import annotations

from enum import Enum
from typing import Literal


StabilityPolicy = Literal["raise", "subdivide", "ignore"]


class CoolingMode(str, Enum):
    """Система охлаждения по C57.91 (масло/воздух, естественное/принудительное)."""

    ONAN = "ONAN"
    ONAF = "ONAF"
    OFAF = "OFAF"
    ODAF = "ODAF"


class ConductorType(str, Enum):
    CU = "CU"
    AL = "AL"


class FluidType(str, Enum):
    MINERAL_OIL = "MINERAL_OIL"
    SILICONE_OIL = "SILICONE_OIL"
    HTHC = "HTHC"
