# Models package
from .user import User
from .device import Device, TelemetrySample

__all__ = ['User', 'Device', 'TelemetrySample']
