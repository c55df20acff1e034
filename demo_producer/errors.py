class DemoProducerError(Exception):
    """Base class for everything the demo producer raises on purpose."""


class ConfigurationError(DemoProducerError):
    pass


class MissingRequiredOption(ConfigurationError):
    def __init__(self, names):
        self.names = list(names)
        super().__init__("missing required option(s): " + ", ".join("--" + n for n in self.names))


class InvalidOptionValue(ConfigurationError):
    def __init__(self, name, value, reason):
        self.name = name
        self.value = value
        super().__init__(f"--{name}={value!r}: {reason}")


class ClientConstructionError(DemoProducerError):
    pass


class QueueFullError(DemoProducerError):
    """Raised by the client when the enqueue policy drops a message."""


class SendError(DemoProducerError):
    def __init__(self, sequence, sent, cause):
        self.sequence = sequence
        self.sent = sent
        self.cause = cause
        super().__init__(f"send failed at message {sequence} after {sent} sent: {cause}")
