"""Client configuration model."""

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "http://accountapi:8080"
DEFAULT_USER_AGENT = "form3-client-python"


class ClientConfig(BaseModel):
    """Configuration for the API client.

    Attributes:
        base_url: API base URL requests are made against
        user_agent: Value of the User-Agent header sent with every request
        debug: Report every retry decision through the log
    """

    base_url: str = Field(DEFAULT_BASE_URL, min_length=1)
    user_agent: str = DEFAULT_USER_AGENT
    debug: bool = False
