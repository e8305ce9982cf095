"""
System prompts for AI-drafted sections of attorney court filings.

Provides reusable prompt text that enforces:
- Formal legal register for US court filings
- Category-specific terminology (criminal defense vs. immigration court)
- Jurisdiction court rules when a variant supplies them
- Content-only responses with no preamble

Usage:
    from src.generation.prompts import get_system_prompt
    from src.templates.schemas import TemplateCategory

    prompt = get_system_prompt(
        category=TemplateCategory.IMMIGRATION,
        court_rules=None,
    )
"""

from typing import Optional

from src.templates.schemas import TemplateCategory


BASE_DRAFTING_PROMPT = """You are drafting one section of a court filing that a licensed attorney will review, edit and sign.

TONE REQUIREMENTS:
- Use formal legal writing style
- Be concise but thorough; focus on facts and applicable law
- Cite relevant authorities when appropriate, and only authorities you are certain exist

OUTPUT:
- Return only the requested section content
- Do not include any preamble, explanation, headings or signature blocks
- Do not invent names, dates or facts that are not in the request
"""


CATEGORY_PROMPTS = {
    TemplateCategory.CRIMINAL: """
CRIMINAL DEFENSE REQUIREMENTS:
- You are an expert legal document drafter for criminal defense matters
- Write persuasively on behalf of the defendant
- Refer to the parties as "Defendant" and "the prosecution" or "the People"/"the State" as the caption does
- Use numbered paragraphs for factual and legal grounds
""",

    TemplateCategory.IMMIGRATION: """
IMMIGRATION COURT REQUIREMENTS:
- You are an expert legal document drafter for immigration defense matters before EOIR immigration courts
- Follow the style of the EOIR Immigration Court Practice Manual
- Always use "Respondent" (never "Defendant"), "DHS" (never "Plaintiff"),
  "A-Number" (never "Case Number"), "Immigration Judge" (never "the Court"),
  and "Notice to Appear / NTA" (never "Complaint")
- Cite INA sections, 8 C.F.R. regulations and EOIR rules as appropriate
""",

    TemplateCategory.CIVIL: """
CIVIL LITIGATION REQUIREMENTS:
- Write on behalf of the moving party
- Use numbered paragraphs and cite the governing procedural rules
""",
}


def get_system_prompt(
    category: TemplateCategory,
    court_rules: Optional[str] = None,
) -> str:
    """
    Build the system prompt for drafting a section of a template.

    Combines the base drafting tone, category-specific terminology and
    any court rules from the applied jurisdiction variant.

    Args:
        category: Category of the template being drafted
        court_rules: Jurisdiction court rules text, if the variant has one

    Returns:
        Complete system prompt string for the drafting model

    Example:
        >>> from src.templates.schemas import TemplateCategory
        >>> prompt = get_system_prompt(TemplateCategory.IMMIGRATION)
        >>> "Respondent" in prompt
        True
    """
    prompt_parts = [BASE_DRAFTING_PROMPT]

    if category in CATEGORY_PROMPTS:
        prompt_parts.append(CATEGORY_PROMPTS[category])

    if court_rules:
        prompt_parts.append(f"""
LOCAL COURT RULES:
{court_rules}
""")

    return "\n\n".join(prompt_parts)
