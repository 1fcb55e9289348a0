class AvailabilityError(ValueError):
    """Base class for bad input to the availability engine."""


class InvalidDateFormat(AvailabilityError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date {value!r}. Expected YYYY-MM-DD")


class InvalidRangeError(AvailabilityError):
    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Start date {start} is after end date {end}")


class MalformedRecordError(AvailabilityError):
    """A reservation record lacks a usable value for one of the configured keys."""

    def __init__(self, key: str, record=None, problem: str = "is missing key"):
        self.key = key
        self.record = record
        super().__init__(f"Reservation record {problem} {key!r}: {record!r}")


class ConfigurationError(AvailabilityError):
    pass
