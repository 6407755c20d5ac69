"""Domain exceptions."""


class ParkingError(Exception):
    """Base class for smart parking errors."""


class ImageDecodeError(ParkingError):
    """Uploaded bytes could not be decoded into an image."""


class SpotNotFoundError(ParkingError):
    """No spot with the given identifier exists in the lot."""

    def __init__(self, spot_id: str):
        super().__init__(f"Spot '{spot_id}' not found")
        self.spot_id = spot_id


class SpotUnavailableError(ParkingError):
    """The spot cannot take the requested action in its current status."""

    def __init__(self, spot_id: str, status: str):
        super().__init__(f"Spot '{spot_id}' is {status}")
        self.spot_id = spot_id
        self.status = status
