"""System instructions for the narrative backend."""

from ..messages import MessageCatalog
from ..models import EvaluationMode


SINGLE_OUTPUT_SHAPE = """\
## Output JSON shape
{
  "batch_summary": {"evaluation_mode": "SINGLE", "price_benchmark_used": null, "market_context": string|null},
  "ranked_proposals": [
    {
      "proposal_id": string,
      "vendor_name": string,
      "flags": {"red_flags": [string], "green_flags": [string], "knockout_reason": string|null},
      "individual_analysis": {
        "requirements_alignment": string,
        "timeline_assessment": string,
        "experience_assessment": string,
        "scope_quality": string,
        "fee_structure_assessment": string|null,
        "payment_terms_assessment": string|null,
        "strengths": [string],
        "weaknesses": [string],
        "missing_requirements": [string],
        "extra_offerings": [string]
      }
    }
  ]
}"""

COMPARE_OUTPUT_SHAPE = """\
## Output JSON shape
{
  "batch_summary": {"evaluation_mode": "COMPARE", "price_benchmark_used": number|null, "market_context": string|null},
  "ranked_proposals": [
    {
      "proposal_id": string,
      "vendor_name": string,
      "flags": {"red_flags": [string], "green_flags": [string], "knockout_reason": string|null},
      "individual_analysis": {
        "requirements_alignment": string,
        "price_assessment": string,
        "timeline_assessment": string,
        "experience_assessment": string,
        "scope_quality": string,
        "fee_structure_assessment": string|null,
        "payment_terms_assessment": string|null,
        "strengths": [string],
        "weaknesses": [string],
        "missing_requirements": [string],
        "extra_offerings": [string]
      },
      "comparative_notes": string|null
    }
  ]
}"""

INPUT_FIELDS = """\
## Input fields
- organization_evaluation_frame, project_metadata, rfp_requirements, proposals[], deterministic_scores[]
- proposals: vendor_profile (name, registration_number, email, phone, completeness)
- deterministic_scores: fields ending in _locked, policy_red_flags, vendor_completeness_flags"""


def system_instruction(mode: EvaluationMode, messages: MessageCatalog) -> str:
    """Build the system instruction for one evaluation mode.

    Args:
        mode: SINGLE or COMPARE
        messages: Locale catalog supplying language and sentinel tokens

    Returns:
        Instruction text sent ahead of the evaluation context
    """

    rules = [
        "You are a strict procurement evaluator. Output valid JSON only.",
        f"- STRICT LANGUAGE: ALL narrative text MUST be in {messages.language}. "
        "English only for enum values and proper nouns.",
        f"- Use '{messages.not_provided}' for any value that is missing or unknown.",
        f"- A list given as ['{messages.none}'] means nothing is missing (full coverage), "
        "not that data is absent.",
        "- Evaluate three dimensions: vendor identity, organization constraints, RFP alignment.",
        "- Explain how missing data or policy violations affected the score.",
        "- Fields ending in _locked are final. Do NOT change, recompute or contradict "
        "final_score, rank, recommendation_level, data_completeness or knockout_triggered.",
        "- Copy every policy_red_flags and vendor_completeness_flags entry into flags.red_flags.",
        "- Return exactly one ranked_proposals entry per proposal, keyed by proposal_id.",
        "",
        INPUT_FIELDS,
        "",
    ]

    if mode == "SINGLE":
        rules.append(
            "SINGLE: one proposal evaluated on its own. No price_assessment, "
            "no market benchmarks, no comparative_notes."
        )
        rules.append(SINGLE_OUTPUT_SHAPE)
    else:
        rules.append(
            "COMPARE: rank against organization_evaluation_frame first. Include price_assessment "
            "for every proposal; comparative_notes may contrast it with the others."
        )
        rules.append(COMPARE_OUTPUT_SHAPE)

    return "\n".join(rules)
