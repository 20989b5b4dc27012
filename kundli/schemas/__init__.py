from .charts import ChartInput, ChartOptions, Place, ComputeRequest, ComputeResponse, MetaOut

from .dashas import (
    DashaComputeRequest,
    DashaComputeResponse,
    DashaActiveRequest,
    DashaActiveResponse,
)
from .strength import (
    StrengthComputeRequest,
    StrengthComputeResponse,
    StrengthBodyRequest,
    StrengthBodyResponse,
)
from .patterns import (
    PatternsComputeRequest,
    PatternsComputeResponse,
    PatternCheckRequest,
    PatternCheckResponse,
)
from .vargas import VargaComputeRequest, VargaComputeResponse
from .transits import TransitsComputeRequest, TransitsComputeResponse
from .compatibility import (
    CompatibilityComputeRequest,
    CompatibilityComputeResponse,
)
