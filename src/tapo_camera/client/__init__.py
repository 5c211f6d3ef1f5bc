from .client import TapoClient
from .models import CameraConfig, DeviceInfo, DeviceStatus, Session
from .poller import StatusPoller
from .request import Request
from .transport import TapoTransport
