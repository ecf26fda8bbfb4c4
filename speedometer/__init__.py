from .models import AlertState, DisplayState, Fix, FixStatus, SourceError, SpeedometerSnapshot, SpeedUnit, TimeFormat
from .pipeline import SpeedPipeline

__version__ = "0.1.0"
