"""Onset detectors, one module per algorithm."""

from beatcut.analysis.detectors.base import OnsetDetector
from beatcut.analysis.detectors.onset_fusion import OnsetFusionDetector
from beatcut.analysis.detectors.energy_peak import EnergyPeakDetector
from beatcut.analysis.detectors.valley_to_peak import ValleyToPeakDetector
from beatcut.analysis.models import Algorithm

DETECTORS: dict[Algorithm, type] = {
    Algorithm.ONSET_FUSION: OnsetFusionDetector,
    Algorithm.ENERGY_PEAK: EnergyPeakDetector,
    Algorithm.VALLEY_TO_PEAK: ValleyToPeakDetector,
}


def get_detector(algorithm: Algorithm | str) -> OnsetDetector:
    """Instantiate the detector registered for ``algorithm``."""
    return DETECTORS[Algorithm(algorithm)]()


__all__ = [
    "OnsetDetector",
    "OnsetFusionDetector",
    "EnergyPeakDetector",
    "ValleyToPeakDetector",
    "DETECTORS",
    "get_detector",
]
