"""Health subsystem — status probe, models, output parser."""

from .models import HealthVerdict, ProbeResult
from .parser import StatusParser, classify
from .probe import StatusProbe
