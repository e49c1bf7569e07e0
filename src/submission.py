"""
Job submission payload for the external mail/notification service.

Builds everything the mailer needs from the current design: customer
details, serialised shapes, the material, the SVG document, the quote, and
(when the design has bends) plain-text bend instructions, plus attachment
file names and the subject line. Sending is not done here.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from bend_geometry import bend_instructions_text
from materials import Material
from quote import Quote, compute_quote, format_quote_text
from run_protocol import artifact_filename, timestamp_ms
from sheet_design import Shape, require_shapes, shapes_to_list, total_bends, total_holes
from svg_exporter import SVGExportConfig, export_svg

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class CustomerDetails:
    full_name: str
    email: str
    phone: str
    company_name: Optional[str] = None
    notes: Optional[str] = None

    def validate(self) -> Dict[str, str]:
        """Field name -> problem; empty when the details are usable."""
        errors = {}
        if not self.full_name.strip():
            errors["fullName"] = "Full name is required"
        if not self.email.strip():
            errors["email"] = "Email is required"
        elif not EMAIL_PATTERN.match(self.email.strip()):
            errors["email"] = "Invalid email address"
        if not self.phone.strip():
            errors["phone"] = "Phone number is required"
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
        }
        if self.company_name:
            data["companyName"] = self.company_name
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass
class Attachment:
    filename: str
    content: str
    content_type: str


@dataclass
class Submission:
    payload: Dict[str, Any]
    subject: str
    body: str
    reply_to: str
    quote: Quote
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def requires_bending(self) -> bool:
        return self.quote.total_bends > 0


def submission_subject(customer: CustomerDetails, material: Material, has_bends: bool) -> str:
    subject = f"New Job Request from {customer.full_name} - {material.label}"
    if has_bends:
        subject += " [BENDING REQUIRED]"
    return subject


def _body(customer: CustomerDetails, quote: Quote, holes: int) -> str:
    lines = [
        "CUSTOMER",
        f"Name: {customer.full_name}",
        f"Email: {customer.email}",
        f"Phone: {customer.phone}",
    ]
    if customer.company_name:
        lines.append(f"Company: {customer.company_name}")
    if customer.notes:
        lines.append(f"Notes: {customer.notes}")
    lines.extend(["", f"Holes: {holes}"])
    if quote.total_bends:
        lines.append(
            f"Sheet metal bends: {quote.total_bends} bend(s) required; "
            "instructions attached, bend lines marked orange on the SVG"
        )
    lines.extend(["", format_quote_text(quote)])
    return "\n".join(lines)


def build_submission(
    customer: CustomerDetails,
    shapes: Sequence[Shape],
    material: Material,
    quantity: Any = 1,
    svg_config: Optional[SVGExportConfig] = None,
    stamp: Optional[int] = None,
) -> Submission:
    """Assemble the submission for *shapes*.

    Raises ``ValueError`` for missing/invalid customer details and
    ``EmptyDesignError`` for an empty design.
    """
    errors = customer.validate()
    if errors:
        raise ValueError("Invalid customer details: " + "; ".join(
            f"{k}: {v}" for k, v in sorted(errors.items())
        ))
    require_shapes(shapes)
    if stamp is None:
        stamp = timestamp_ms()

    svg_content = export_svg(shapes, svg_config)
    quote = compute_quote(shapes, material, quantity)
    has_bends = total_bends(shapes) > 0

    attachments = [
        Attachment(artifact_filename("design", "svg", stamp), svg_content, "image/svg+xml"),
    ]
    if has_bends:
        attachments.append(Attachment(
            artifact_filename("bend-instructions", "txt", stamp),
            bend_instructions_text(shapes, material),
            "text/plain",
        ))

    payload = {
        "customerDetails": customer.to_dict(),
        "shapes": shapes_to_list(shapes),
        "material": material.to_dict(),
        "svgContent": svg_content,
        "quote": quote.to_dict(),
    }
    logger.info(
        "Built submission for %s: %d shape(s), %d attachment(s)",
        customer.email, len(shapes), len(attachments),
    )
    return Submission(
        payload=payload,
        subject=submission_subject(customer, material, has_bends),
        body=_body(customer, quote, total_holes(shapes)),
        reply_to=customer.email,
        quote=quote,
        attachments=attachments,
    )
