"""Certificate tool implementation: record a new or renewed certificate for an employee."""

from trainai.chains.chat_tools.arguments import UpdateEmployeeCertificateArgs
from trainai.chains.chat_tools.base import (
    Resolution,
    ToolServices,
    ToolTurn,
    clarification_response,
    error_response,
    resolve_employee,
)
from trainai.core.logging import get_logger
from trainai.core.results import ErrorKind
from trainai.core.schemas_ai import AIResponse
from trainai.core.schemas_mutations import CertificateLinkKind

logger = get_logger(__name__)


async def _update_employee_certificate(
    tools: ToolServices, args: UpdateEmployeeCertificateArgs, turn: ToolTurn
) -> AIResponse:
    """
    Link a certificate to an employee.

    The employee and the certificate type are both resolved from free text.
    An identical certificate (same number or type, same expiry) is refused;
    the same certificate with a new expiry is recorded as a renewal.
    """
    resolution = await resolve_employee(tools, args.employee_id)
    if resolution.match is None:
        return clarification_response(resolution, "employee", ["Check employee name", "Search all employees"])
    employee = resolution.match

    data = args.certificate_data
    licenses = await tools.store.list_licenses()
    type_candidates = tools.resolver.rank_certificate_types(data.license_type, licenses)
    license_match = tools.resolver.pick(type_candidates)
    if license_match is None:
        return clarification_response(
            Resolution(reference=data.license_type, candidates=type_candidates),
            "certificate type",
            ["View certificate definitions", "Check certificate name"],
        )

    certificate = {
        "license_id": license_match.entity_id,
        "certificate_number": data.certificate_number,
        "issue_date": data.issue_date,
        "expiry_date": data.expiry_date,
        "issuer": data.issuing_authority,
        "status": data.status,
    }
    result = await tools.mutations.link_certificate(turn.actor, employee.entity_id, certificate)

    if not result.ok:
        if result.error.kind == ErrorKind.DUPLICATE:
            return AIResponse(
                content=(
                    f"{employee.entity_name} already has this {license_match.entity_name} certificate with the "
                    "same expiry date, so I didn't add it again."
                ),
                suggestions=["View certificate details", "Check expiry dates"],
            )
        return error_response(result.error, "the certificate")

    if CertificateLinkKind.RENEWAL.value in result.tags:
        expiry = f" (new expiry {data.expiry_date})" if data.expiry_date else ""
        content = f"Got it! I've recorded the renewal of {employee.entity_name}'s {license_match.entity_name} certificate{expiry}."
    else:
        content = f"Done! I've added the {license_match.entity_name} certificate for {employee.entity_name}."

    return AIResponse(
        content=content,
        suggestions=["View certificate details", "Add another certificate", "Check expiry dates"],
    )
