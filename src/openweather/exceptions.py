"""Exceptions for the OpenWeather poller.

All exceptions inherit from OpenWeatherError. Fetch failures share the
OpenWeatherFetchError base so the poller can recover from all of them
in one place.

Example:
    Catching fetch failures when using the client directly::

        from openweather import OpenWeatherClient, OpenWeatherFetchError

        async with OpenWeatherClient() as client:
            try:
                measurement = await client.fetch(location)
            except OpenWeatherFetchError as e:
                print(f"Fetch failed: {e}")
"""


class OpenWeatherError(Exception):
    """Base exception for all OpenWeather errors."""

    pass


class OpenWeatherFetchError(OpenWeatherError):
    """Base exception for a failed weather fetch.

    Raised by Fetcher implementations. WeatherPoller catches it, logs it
    and leaves the cached values unchanged.
    """

    pass


class OpenWeatherConnectionError(OpenWeatherFetchError):
    """Exception raised when the request could not be completed.

    Covers DNS failures, refused connections and timeouts. Wraps the
    underlying httpx exception.

    Example:
        >>> try:
        ...     await client.fetch(location)
        ... except OpenWeatherConnectionError as e:
        ...     print(f"Network error: {e}")
    """

    pass


class OpenWeatherHTTPStatusError(OpenWeatherFetchError):
    """Exception raised when the API answers with a non-2xx status.

    Args:
        status_code: HTTP status code of the response.

    Attributes:
        status_code: HTTP status code of the response.

    Example:
        >>> raise OpenWeatherHTTPStatusError(401)
        OpenWeatherHTTPStatusError: HTTP status 401
    """

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP status {status_code}")


class OpenWeatherContentTypeError(OpenWeatherFetchError):
    """Exception raised when the response is not application/json.

    Args:
        content_type: Content type reported by the server.
    """

    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        super().__init__(f"Unexpected content type: {content_type or '<missing>'}")


class OpenWeatherDecodeError(OpenWeatherFetchError):
    """Exception raised when the response body cannot be decoded.

    This occurs for malformed JSON and for payloads missing main.temp or
    main.humidity, or carrying values of the wrong type or range.
    """

    pass


class OpenWeatherValidationError(OpenWeatherError):
    """Exception raised when a Location is built with invalid values.

    This occurs for coordinates out of range or an empty API key. It
    signals a programming error, not a transient condition, and is never
    caught by the poller.

    Example:
        >>> try:
        ...     Location(name="x", latitude=91.0, longitude=0.0, api_key="k")
        ... except OpenWeatherValidationError as e:
        ...     print(f"Invalid input: {e}")
    """

    pass
