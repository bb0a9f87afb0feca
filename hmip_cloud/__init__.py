"""Client for the HomematicIP cloud: full-state snapshots and push events."""
from .client import HomematicClient, create_client
from .config import Config, load_config
from .const import VERSION
from .decoder import decode_push_message, decode_state
from .dispatcher import HandlerRegistration, HandlerRegistry
from .errors import (
    AlreadyRunningError,
    ApiResponseError,
    ConfigError,
    DecodeError,
    HmipError,
    RegistrationError,
    ResolutionError,
    TransportError,
)
from .models import (
    BaseDeviceChannel,
    Client,
    ClimateMeasuring,
    ClimateSensorChannel,
    Device,
    DeviceChangedEvent,
    Event,
    FunctionalChannel,
    Group,
    GroupChangedEvent,
    MetaGroup,
    Origin,
    PowerConsumptionMeasuring,
    PushMessage,
    SmokeDetectorChannel,
    Switchable,
    SwitchChannel,
    SwitchMeasuringChannel,
)
from .state import State
from .stream import EventStream, StreamState

__version__ = VERSION
