"""Restriction endpoints of the control-plane.

Routes
------
``PUT    v1/restrict/<api>/<dir>``   set a restriction
``GET    v1/restrict/<api>/<dir>``   fetch one restriction
``DELETE v1/restrict/<api>/<dir>``   remove a restriction
``GET    v1/restrict/<api>``         page through one API (``?from=<dir>``)
``GET    v1/restrict``               page through every API (``?from_api=&from=``)

``<dir>`` is always the URL-safe base64 wire form.

Example
-------
>>> api = RestrictionApi(dispatcher)
>>> record = build_restriction("config", "team/reports", region=["eu"])
>>> api.set_restriction(record)
>>> api.get_restriction("config", record.directory).details.regions_allowed
['xe']
"""
from __future__ import annotations

import logging
import urllib.parse

from pydantic import ValidationError

from aumos_data_residency.client.dispatcher import HttpVerb, RequestDispatcher
from aumos_data_residency.client.models import Restriction, RestrictionPage
from aumos_data_residency.directory.codec import DirectoryId
from aumos_data_residency.errors import MalformedResponseError
from aumos_data_residency.restrictions.records import (
    RESTRICT_BASE_PATH,
    ApiKind,
    RestrictionRecord,
    parse_api,
    restriction_path,
)

logger = logging.getLogger(__name__)


class RestrictionApi:
    """Typed wrapper around the restriction routes.

    Parameters
    ----------
    dispatcher:
        The authenticated dispatcher to send calls through.
    """

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # Single restriction
    # ------------------------------------------------------------------

    def set_restriction(self, record: RestrictionRecord) -> None:
        """Create or replace the restriction described by *record*."""
        logger.info("Setting restriction on %s/%s", record.api.value, record.directory.wire)
        self._dispatcher.dispatch(HttpVerb.PUT, record.path, record.to_details())

    def get_restriction(self, api: ApiKind | str, directory: DirectoryId) -> Restriction:
        """Fetch the restriction on *directory* of *api*."""
        payload = self._dispatcher.dispatch_json(HttpVerb.GET, restriction_path(api, directory))
        return _parse(Restriction, payload)

    def delete_restriction(self, api: ApiKind | str, directory: DirectoryId) -> None:
        """Remove the restriction on *directory* of *api*."""
        logger.info("Deleting restriction on %s/%s", parse_api(api).value, directory.wire)
        self._dispatcher.dispatch(HttpVerb.DELETE, restriction_path(api, directory))

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def get_page(
        self,
        api: ApiKind | str | None = None,
        from_dir: DirectoryId | str | None = None,
        from_api: ApiKind | str | None = None,
    ) -> RestrictionPage:
        """Fetch one page of restrictions.

        Parameters
        ----------
        api:
            Limit the listing to one API.  ``None`` lists every API.
        from_dir:
            Directory to start from (inclusive); a ``str`` is taken as wire form.
        from_api:
            API to start from when listing every API.
        """
        query: dict[str, str] = {}
        if api is None:
            path = RESTRICT_BASE_PATH
            if from_api is not None:
                query["from_api"] = parse_api(from_api).value
        else:
            path = f"{RESTRICT_BASE_PATH}/{parse_api(api).value}"
        if from_dir is not None:
            query["from"] = from_dir.wire if isinstance(from_dir, DirectoryId) else from_dir
        if query:
            path = f"{path}?{urllib.parse.urlencode(query)}"
        payload = self._dispatcher.dispatch_json(HttpVerb.GET, path)
        return _parse(RestrictionPage, payload)

    def get_all_pages(self, api: ApiKind | str | None = None) -> list[Restriction]:
        """Follow pagination cursors and return every restriction."""
        restrictions: list[Restriction] = []
        seen: set[tuple[str | None, str | None]] = set()
        from_api: str | None = None
        from_dir: str | None = None
        while True:
            page = self.get_page(api=api, from_dir=from_dir, from_api=from_api)
            restrictions.extend(page.restrictions)
            if page.is_last:
                return restrictions
            cursor = (page.next_api, page.next_key)
            if cursor in seen:
                raise MalformedResponseError(f"pagination cursor repeated: {cursor}")
            seen.add(cursor)
            from_api = page.next_api if api is None else None
            from_dir = page.next_key


def _parse(model: type[Restriction] | type[RestrictionPage], payload: object):
    if payload is None:
        raise MalformedResponseError("empty body")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponseError(str(exc), str(payload)) from exc
