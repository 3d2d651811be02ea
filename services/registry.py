"""
Company registry lookup (Companies House). Best-effort: any failure, or a missing API key,
degrades to an empty result so the wizard falls back to manual entry.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from config import settings

logger = logging.getLogger(__name__)


class CompanyRegistry(Protocol):
    async def search(self, query: str) -> list[dict[str, Any]]: ...

    async def get_details(self, number: str) -> Optional[dict[str, Any]]: ...


def _format_address(address: dict[str, Any] | None) -> str:
    if not address:
        return ""
    parts = [
        address.get("address_line_1"),
        address.get("address_line_2"),
        address.get("locality"),
        address.get("postal_code"),
    ]
    return ", ".join(p for p in parts if p)


def split_officer_name(name: str) -> tuple[str, str]:
    """Registry officer names are 'SURNAME, Forenames'; return (first_name, last_name)."""
    if "," in name:
        last, first = name.split(",", 1)
        first = first.strip().split(" ")[0] if first.strip() else ""
        return first.title(), last.strip().title()
    parts = name.split()
    if len(parts) == 1:
        return parts[0].title(), ""
    return parts[0].title(), parts[-1].title()


class CompaniesHouseClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.companies_house_api_key
        self.base_url = (base_url or settings.companies_house_api_url).rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.api_key or "", ""),
            timeout=settings.http_timeout_seconds,
            transport=self._transport,
        )

    async def search(self, query: str) -> list[dict[str, Any]]:
        query = (query or "").strip()
        if len(query) < 2 or not self.api_key:
            return []
        try:
            async with self._client() as client:
                response = await client.get("/search/companies", params={"q": query, "items_per_page": 10})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Company registry search failed for %r: %s", query, e)
            return []
        return [
            {
                "number": item.get("company_number"),
                "name": item.get("title"),
                "status": item.get("company_status"),
                "address": item.get("address_snippet") or _format_address(item.get("address")),
            }
            for item in data.get("items") or []
        ]

    async def get_details(self, number: str) -> Optional[dict[str, Any]]:
        if not number or not self.api_key:
            return None
        try:
            async with self._client() as client:
                company_resp = await client.get(f"/company/{number}")
                company_resp.raise_for_status()
                officers_resp = await client.get(f"/company/{number}/officers")
                officers_resp.raise_for_status()
                company = company_resp.json()
                officers = officers_resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Company registry details failed for %s: %s", number, e)
            return None

        address = company.get("registered_office_address") or {}
        officer_rows = []
        for officer in officers.get("items") or []:
            if officer.get("resigned_on"):
                continue
            first, last = split_officer_name(officer.get("name") or "")
            officer_rows.append({
                "name": officer.get("name"),
                "first_name": first,
                "last_name": last,
                "role": officer.get("officer_role"),
                "appointed_on": officer.get("appointed_on"),
            })
        return {
            "company": {
                "number": company.get("company_number") or number,
                "name": company.get("company_name"),
                "status": company.get("company_status"),
                "address_line_1": address.get("address_line_1"),
                "address_line_2": address.get("address_line_2"),
                "city": address.get("locality"),
                "postcode": address.get("postal_code"),
                "country": address.get("country") or "United Kingdom",
            },
            "officers": officer_rows,
        }
