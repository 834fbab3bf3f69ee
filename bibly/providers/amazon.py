from __future__ import annotations

from ..errors import ProviderNotImplementedError
from ..schemas import CandidateMetadata


class AmazonProvider:
    """Amazon Product Advertising API.

    Requests to this API must be signed with the access key, secret key and
    associate tag; signing is not supported, so every lookup fails.
    """

    name = "amazon"

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        associate_tag: str | None = None,
    ) -> None:
        self.access_key = access_key
        self.secret_key = secret_key
        self.associate_tag = associate_tag

    def resolve(self, isbn: str) -> CandidateMetadata:
        raise ProviderNotImplementedError("Amazon API integration is not implemented.", provider=self.name)
