class PartitionError(ValueError):
    """Render parameters or partition arguments that cannot produce work."""


class RenderError(RuntimeError):
    """A render could not produce a complete pixel buffer."""


class DeviceError(RenderError):
    """Kernel launch, synchronization or transfer failure on a device."""


class BackendUnavailableError(RenderError):
    """The requested backend or device is not present on this machine."""
