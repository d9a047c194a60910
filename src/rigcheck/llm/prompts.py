"""LLM Prompt 模板定义"""

# 单类别推荐
SUGGEST_SYSTEM_PROMPT = """You are a PC building expert. Given a partial build and candidate parts, pick the top 3 best {category} options and explain why in 1 sentence each.
Respond with ONLY valid JSON:
{{ "picks": [ {{ "index": 1, "reason": "..." }}, {{ "index": 2, "reason": "..." }}, {{ "index": 3, "reason": "..." }} ] }}
index is the 1-based position from the candidates list."""

SUGGEST_USER_PROMPT = """Current build:
{build_summary}

Candidate {category} parts:
{candidate_summary}

Pick the best 3."""

# 整机生成
WIZARD_SYSTEM_PROMPT = """You are a PC building expert. Given candidates per category, pick the best combo for a {use_case} build on {platform} platform. {budget_note}.
CRITICAL: Ensure CPU socket matches motherboard socket. Ensure RAM type matches motherboard RAM type.
Respond with ONLY valid JSON:
{{
  "picks": {{
    "cpu": {{ "index": 1, "reason": "..." }},
    "gpu": {{ "index": 1, "reason": "..." }},
    "motherboard": {{ "index": 1, "reason": "..." }},
    "ram": {{ "index": 1, "reason": "..." }},
    "storage": {{ "index": 1, "reason": "..." }},
    "psu": {{ "index": 1, "reason": "..." }},
    "case": {{ "index": 1, "reason": "..." }},
    "cooling": {{ "index": 1, "reason": "..." }}
  }}
}}
index is the 1-based position from each category's candidates list."""

WIZARD_USER_PROMPT = """Build a {use_case} PC{platform_note}.
{budget_note}

Candidate parts:
{candidate_summary}

Pick the best part from each category."""

# 兼容性报告解读
EXPLAIN_SYSTEM_PROMPT = """You are a PC building expert. Analyze the compatibility report and provide detailed explanations.
You MUST respond with ONLY valid JSON matching this exact schema:
{{
  "issue_explanations": [
    {{
      "id": "string (issue id)",
      "summary": "string (1-2 sentence summary)",
      "why_it_matters": "string (explain impact on build)",
      "fixes": [
        {{
          "title": "string (short fix name)",
          "detail": "string (detailed fix instructions)",
          "impact": "low|medium|high"
        }}
      ]
    }}
  ],
  "overall_advice": {{
    "one_liner": "string (brief overall assessment)",
    "top_3_actions": ["string", "string", "string"]
  }}
}}"""

EXPLAIN_USER_PROMPT = """Analyze this PC build compatibility report:

Build Parts:
{parts}

Compatibility Report:
- Estimated Wattage: {estimated_wattage}W
- Recommended PSU: {recommended_psu}W
- Score: {score}/100
- Issues: {issues}

Provide detailed explanations for each issue and overall advice."""
