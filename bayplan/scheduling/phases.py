"""
Phase model: the ordered manufacturing phases and their weights.

A project's scheduled interval is split across six phases by percentage
weight. Projects may carry their own weights; anything missing or unusable
falls back to the default table, and the resulting set is always normalized
to sum to 100.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bayplan.logging_config import get_logger

logger = get_logger(__name__)


FABRICATION = "Fabrication"
PAINT = "Paint"
PRODUCTION = "Production"
IT_INTEGRATION = "IT Integration"
NTC_TESTING = "NTC Testing"
QC = "QC"

PHASE_SEQUENCE = (FABRICATION, PAINT, PRODUCTION, IT_INTEGRATION, NTC_TESTING, QC)

# States outside the six weighted phases
PRE_PRODUCTION = "Pre-Production"
EXECUTIVE_REVIEW = "Executive Review"
SHIPPED = "Shipped"

# Full lifecycle order, used to compare phases
PHASE_ORDER = (PRE_PRODUCTION,) + PHASE_SEQUENCE + (EXECUTIVE_REVIEW, SHIPPED)

# NOTE: these sum to 115, not 100. They are normalized like any other weight
# set; which default is "too large" is still an open product question.
DEFAULT_PHASE_WEIGHTS: Dict[str, float] = {
    FABRICATION: 27.0,
    PAINT: 7.0,
    PRODUCTION: 60.0,
    IT_INTEGRATION: 7.0,
    NTC_TESTING: 7.0,
    QC: 7.0,
}

# Project attribute holding each phase's weight
WEIGHT_FIELDS: Dict[str, str] = {
    FABRICATION: 'fab_percentage',
    PAINT: 'paint_percentage',
    PRODUCTION: 'production_percentage',
    IT_INTEGRATION: 'it_percentage',
    NTC_TESTING: 'ntc_percentage',
    QC: 'qc_percentage',
}

WEIGHT_SUM_TOLERANCE = 1e-9

_PHASE_ALIASES: Dict[str, str] = {
    'fab': FABRICATION,
    'fabrication': FABRICATION,
    'fab_percentage': FABRICATION,
    'fabpercentage': FABRICATION,
    'paint': PAINT,
    'wrap': PAINT,
    'paint_percentage': PAINT,
    'paintpercentage': PAINT,
    'production': PRODUCTION,
    'assembly': PRODUCTION,
    'production_percentage': PRODUCTION,
    'productionpercentage': PRODUCTION,
    'it': IT_INTEGRATION,
    'it integration': IT_INTEGRATION,
    'it_integration': IT_INTEGRATION,
    'it_percentage': IT_INTEGRATION,
    'itpercentage': IT_INTEGRATION,
    'ntc': NTC_TESTING,
    'ntc testing': NTC_TESTING,
    'ntc_testing': NTC_TESTING,
    'ntc_percentage': NTC_TESTING,
    'ntcpercentage': NTC_TESTING,
    'qc': QC,
    'qc_percentage': QC,
    'qcpercentage': QC,
}


@dataclass(frozen=True)
class PhaseWeight:
    """A phase and its share (percent) of the project's duration or hours."""
    phase: str
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {'phase': self.phase, 'weight': self.weight}


def canonical_phase(name: str) -> Optional[str]:
    """
    Map a phase label or weight field name to its canonical phase name.

    Returns None for labels that are not one of the six weighted phases.
    """
    if name in DEFAULT_PHASE_WEIGHTS:
        return name
    if not isinstance(name, str):
        return None
    return _PHASE_ALIASES.get(name.strip().lower())


def phase_rank(phase: str) -> int:
    """
    Position of a phase in the full lifecycle (Pre-Production first, Shipped last).

    Raises:
        ValueError: If phase is not a known lifecycle state
    """
    return PHASE_ORDER.index(phase)


def coerce_weight(value: Any, default: float, phase: Optional[str] = None) -> float:
    """
    Interpret a raw weight value.

    Missing values take the default silently. Values that are not finite
    non-negative numbers (unparseable strings, NaN, infinities, negatives,
    booleans) are malformed: they also take the default, with a warning, so a
    bad weight can never leak NaN into the day partition.
    """
    if value is None or value == '':
        return default

    if isinstance(value, bool):
        number = math.nan
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan

    if not math.isfinite(number) or number < 0:
        logger.warning("Malformed phase weight replaced by default",
                       phase=phase, value=repr(value), default=default)
        return default
    return number


def _raw_weights(source: Any) -> Dict[str, Any]:
    """Collect raw per-phase weight values from a project, mapping or weight list."""
    if source is None:
        return {}

    if isinstance(source, Mapping):
        items: Iterable = source.items()
    elif hasattr(source, WEIGHT_FIELDS[FABRICATION]):
        return {phase: getattr(source, attr) for phase, attr in WEIGHT_FIELDS.items()}
    else:
        items = ((w.phase, w.weight) if isinstance(w, PhaseWeight) else tuple(w) for w in source)

    raw: Dict[str, Any] = {}
    for key, value in items:
        phase = canonical_phase(key)
        if phase is None:
            logger.warning("Ignoring weight for unknown phase", phase=key)
            continue
        raw[phase] = value
    return raw


def weight_map(source: Any) -> Dict[str, float]:
    """
    Per-phase weights exactly as given (no normalization).

    Missing or malformed entries take the phase's default weight.
    """
    raw = _raw_weights(source)
    return {
        phase: coerce_weight(raw.get(phase), DEFAULT_PHASE_WEIGHTS[phase], phase)
        for phase in PHASE_SEQUENCE
    }


def resolve_weights(source: Any) -> List[PhaseWeight]:
    """
    Resolve a project's phase weights into an ordered, normalized list.

    Steps:
    1. Read each phase's weight from the project (or mapping / weight list)
    2. Substitute the default for missing or malformed values
    3. If all weights are zero, fall back to the default table
    4. If the sum is not 100, scale every weight by 100 / sum

    Applying this function to its own output returns the same weights.

    Args:
        source: Project, mapping of phase -> weight, or iterable of PhaseWeight

    Returns:
        list: Six PhaseWeight entries in phase order, summing to 100
    """
    weights = weight_map(source)
    total = sum(weights.values())

    if total <= 0:
        logger.warning("All phase weights are zero, using defaults")
        weights = dict(DEFAULT_PHASE_WEIGHTS)
        total = sum(weights.values())

    if abs(total - 100.0) > WEIGHT_SUM_TOLERANCE:
        logger.debug("Normalizing phase weights", total=total)
        # Scale by the largest weight first so tiny or huge sums cannot overflow
        largest = max(weights.values())
        scaled = {phase: weight / largest for phase, weight in weights.items()}
        scaled_total = sum(scaled.values())
        weights = {phase: weight / scaled_total * 100.0 for phase, weight in scaled.items()}

    return [PhaseWeight(phase, weights[phase]) for phase in PHASE_SEQUENCE]
