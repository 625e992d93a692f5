from rest_framework import status
from rest_framework.exceptions import APIException


class GatewayError(APIException):
    """
    Raised when a payment provider rejects a request or cannot be reached.

    Provider-side rejections (4xx) surface as 400, transport failures and
    provider outages as 502.
    """
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed"
    default_code = "gateway_error"

    def __init__(self, detail=None, provider=None, status_code=None, provider_status=None):
        super().__init__(detail)
        self.provider = provider
        self.provider_status = provider_status
        if status_code is not None:
            self.status_code = status_code
