"""Domain registration, lookup, transfer and DNS tools."""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from twentyi_mcp import validation
from twentyi_mcp.context import ServerContext
from twentyi_mcp.errors import UpstreamApiError
from twentyi_mcp.modules.common import PackageDomainInput, segment
from twentyi_mcp.registry import ModuleDefinition, ToolModule

DEFAULT_DNS_TTL = 3600

DnsRecordType = Literal["A", "AAAA", "CNAME", "MX", "TXT", "NS", "SRV"]


# ─── Input Models ────────────────────────────────────────────────────────────


class DomainInput(BaseModel):
    """Input for tools that act on one domain."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    domain_id: str = Field(..., description="Domain ID or domain name", min_length=1)


class SearchDomainsInput(BaseModel):
    """Input for domain availability search."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    search_term: str = Field(
        ...,
        description="Domain name or keyword to search for (e.g., 'example.com' or 'mybrand')",
        min_length=1,
        max_length=253,
    )
    suggestions: Optional[bool] = Field(default=None, description="Include suggested alternatives")
    tlds: Optional[List[str]] = Field(
        default=None,
        description="Restrict the search to these TLDs (e.g., ['.com', '.co.uk'])",
    )

    @field_validator("tlds")
    @classmethod
    def _check_tlds(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else validation.non_empty_strings(v)


class DomainContact(BaseModel):
    """Registrant contact details."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., description="Contact person name", min_length=1)
    organisation: Optional[str] = Field(default=None, description="Organisation name")
    address: str = Field(..., description="Street address", min_length=1)
    city: str = Field(..., description="City", min_length=1)
    sp: str = Field(..., description="State or province", min_length=1)
    pc: str = Field(..., description="Postal code", min_length=1)
    cc: str = Field(..., description="Two-letter country code (e.g., 'GB')", min_length=2, max_length=2)
    telephone: str = Field(..., description="Telephone number (e.g., '+44.1234567890')", min_length=1)
    email: str = Field(..., description="Contact email address", min_length=3)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        return validation.email_address(v)


class RegisterDomainInput(BaseModel):
    """Input for registering a new domain."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., description="Domain name to register (e.g., 'example.com')", min_length=1)
    years: int = Field(..., description="Registration period in years", ge=1, le=10)
    contact: DomainContact = Field(..., description="Registrant contact details")
    privacy_service: Optional[bool] = Field(default=None, description="Enable WHOIS privacy")
    nameservers: Optional[List[str]] = Field(default=None, description="Custom nameservers")
    stack_user: Optional[str] = Field(default=None, description="StackCP user to assign the domain to")

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        return validation.domain_name(v)

    @field_validator("nameservers")
    @classmethod
    def _check_nameservers(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else [validation.domain_name(ns) for ns in validation.non_empty_strings(v)]


class TransferLockInput(PackageDomainInput):
    """Input for enabling or disabling a domain transfer lock."""

    enabled: bool = Field(..., description="True to allow transfers, False to lock the domain")


class UpdateDnsRecordInput(BaseModel):
    """Input for adding or updating a DNS record."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    domain_id: str = Field(..., description="Domain ID or domain name", min_length=1)
    record_type: DnsRecordType = Field(..., description="DNS record type")
    name: str = Field(..., description="Record host name (e.g., 'www' or '@')", min_length=1)
    value: str = Field(..., description="Record value (e.g., an IP address or hostname)", min_length=1)
    ttl: int = Field(default=DEFAULT_DNS_TTL, description="Time to live in seconds", ge=1)


# ─── Tools ───────────────────────────────────────────────────────────────────


def create_module(ctx: ServerContext) -> ModuleDefinition:
    module = ToolModule("domains")

    @module.tool(name="list_domains", title="List Domains", read_only=True)
    async def list_domains() -> Any:
        """List all domains on the account."""
        return await ctx.client.get("/domain")

    @module.tool(name="get_domain_info", title="Get Domain Info", read_only=True)
    async def get_domain_info(params: DomainInput) -> Any:
        """Get registration details for a domain."""
        path = await ctx.account.path(f"/domain/{segment(params.domain_id)}")
        return await ctx.client.get(path)

    @module.tool(name="search_domains", title="Search Domains", read_only=True)
    async def search_domains(params: SearchDomainsInput) -> Any:
        """Check availability of a domain name, optionally with suggestions."""
        query = {}
        if params.suggestions is not None:
            query["suggestions"] = str(params.suggestions).lower()
        if params.tlds:
            query["tlds"] = ",".join(params.tlds)
        path = f"/domain-search/{segment(params.search_term)}"
        try:
            return await ctx.client.get(path, params=query or None)
        except UpstreamApiError as e:
            if e.status == 429:
                raise UpstreamApiError(
                    429, "Domain search rate limit exceeded. Please try again later.", "GET", path
                ) from e
            raise

    @module.tool(
        name="get_domain_verification_status",
        title="Get Domain Verification Status",
        read_only=True,
    )
    async def get_domain_verification_status() -> Any:
        """List domains awaiting registrant email verification."""
        try:
            return await ctx.client.get("/domainVerification")
        except UpstreamApiError as e:
            if e.status == 404:
                return []
            raise

    @module.tool(name="register_domain", title="Register Domain")
    async def register_domain(params: RegisterDomainInput) -> Any:
        """Register a new domain name. Charges the reseller account."""
        body = {
            "name": params.name,
            "years": params.years,
            "contact": params.contact.model_dump(exclude_none=True),
        }
        if params.privacy_service is not None:
            body["privacyService"] = params.privacy_service
        if params.nameservers:
            body["nameservers"] = params.nameservers
        if params.stack_user:
            body["stackUser"] = params.stack_user
        path = await ctx.account.path("/addDomain")
        return await ctx.client.post(path, body)

    @module.tool(name="get_domain_periods", title="Get Domain Periods", read_only=True)
    async def get_domain_periods() -> Any:
        """List the registration periods supported for each TLD."""
        return await ctx.client.get("/domain-period")

    @module.tool(name="get_domain_premium_types", title="Get Domain Premium Types", read_only=True)
    async def get_domain_premium_types() -> Any:
        """List premium domain pricing types."""
        return await ctx.client.get("/domainPremiumType")

    @module.tool(name="get_domain_whois", title="Get Domain WHOIS", read_only=True)
    async def get_domain_whois(params: PackageDomainInput) -> Any:
        """Get WHOIS data for a domain in a hosting package."""
        return await ctx.client.get(
            f"/package/{segment(params.package_id)}/domain/{segment(params.domain_id)}/whois"
        )

    @module.tool(name="get_domain_auth_code", title="Get Domain Auth Code", read_only=True)
    async def get_domain_auth_code(params: PackageDomainInput) -> Any:
        """Get the EPP/auth code needed to transfer a domain away."""
        return await ctx.client.get(
            f"/package/{segment(params.package_id)}/domain/{segment(params.domain_id)}/authCode"
        )

    @module.tool(name="set_domain_transfer_lock", title="Set Domain Transfer Lock", idempotent=True)
    async def set_domain_transfer_lock(params: TransferLockInput) -> Any:
        """Allow or block transfers of a domain to another registrar."""
        return await ctx.client.post(
            f"/package/{segment(params.package_id)}/domain/{segment(params.domain_id)}/canTransfer",
            {"enable": params.enabled},
        )

    @module.tool(name="get_dns_records", title="Get DNS Records", read_only=True)
    async def get_dns_records(params: DomainInput) -> Any:
        """List DNS records for a domain."""
        path = await ctx.account.path(f"/domain/{segment(params.domain_id)}/dns")
        return await ctx.client.get(path)

    @module.tool(name="update_dns_record", title="Update DNS Record")
    async def update_dns_record(params: UpdateDnsRecordInput) -> Any:
        """Add or update a DNS record for a domain."""
        path = await ctx.account.path(f"/domain/{segment(params.domain_id)}/dns")
        return await ctx.client.post(
            path,
            {
                "record_type": params.record_type,
                "name": params.name,
                "value": params.value,
                "ttl": params.ttl,
            },
        )

    return module.definition()
