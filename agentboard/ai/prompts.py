"""
Prompts for AgentBoard generation calls

Templates are filled with str.format; literal JSON braces are doubled.
- Project analysis: one call summarizing purpose, stack and type
- Agent analysis: the per-persona JSON response contract
- Task enrichment: expands a bare markdown checklist line
- Document summary: 2-3 sentence knowledge-base summary
"""

# =============================================================================
# PROJECT ANALYSIS
# =============================================================================

PROJECT_ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert software project analyst. Analyze projects comprehensively, "
    "identifying technology stack, architecture patterns, strengths, and improvement opportunities."
)

PROJECT_ANALYSIS_PROMPT = """Analyze this project:

**Project Name:** {name}
**Description:** {description}
**Repository:** {repo_url}

**README Content:**
{readme}

**Code Structure:**
{code_structure}

Please provide:
1. A brief summary of what this project does
2. Identified tech stack (as JSON array)
3. Project type (e.g., web app, library, CLI tool, etc.)
4. Key strengths
5. Recommendations for improvement

Format your response as JSON:
{{
  "summary": "...",
  "techStack": ["tech1", "tech2"],
  "projectType": "...",
  "strengths": ["strength1", "strength2"],
  "recommendations": ["rec1", "rec2"]
}}"""

# =============================================================================
# AGENT ANALYSIS
# =============================================================================

TECHNICAL_ANALYSIS_GUIDANCE = """
**IMPORTANT FOR TECHNICAL ANALYSIS:**
- Reference SPECIFIC files, functions, or components from the code structure above
- Identify actual patterns you see (e.g., "I see Next.js app router structure" or "Express middleware pattern")
- Mention specific dependencies that need attention (versions, security, size)
- Create tasks with concrete file paths and technical details
- Avoid generic advice - be as specific as the information above allows

"""

AGENT_RESPONSE_FORMAT = """Based on your analysis, provide:

1. **Key Insights** - 2-4 SPECIFIC observations about this project from your {agent_name} perspective
2. **Actionable Tasks** - 3-7 CONCRETE tasks that should be added to the project board
3. **Recommendations** - High-level strategic recommendations

Format your response as JSON:
{{
  "insights": ["insight1", "insight2", ...],
  "tasks": [
    {{
      "title": "Specific task title with file/component names",
      "description": "Detailed description with technical context",
      "priority": "high|medium|low",
      "reasoning": "Why this task is important with concrete impact"
    }}
  ],
  "recommendations": ["rec1", "rec2", ...]
}}

{closing}"""

TECHNICAL_CLOSING = (
    "CRITICAL: Be SPECIFIC and TECHNICAL. Reference actual files, dependencies, "
    "and patterns you observe. Avoid generic tasks."
)
GENERAL_CLOSING = "Be specific and actionable. Focus on tasks that can be worked on immediately."

# =============================================================================
# TASK ENRICHMENT
# =============================================================================

TASK_ENRICHMENT_SYSTEM_PROMPT = (
    "You are a technical project analyst helping to understand and prioritize "
    "software development tasks."
)

TASK_ENRICHMENT_PROMPT = """Analyze this task extracted from a project's markdown file and provide:
1. An enhanced description explaining WHAT needs to be done and WHY it matters
2. Technical reasoning explaining the importance and impact of this task
3. Extrapolate additional context based on the project type and task details

Project: {name}
{description_line}
{tech_stack_line}

Task Title: {title}
Source File: {source}
Original Description: {original_description}

Surrounding Context from Markdown:
{markdown_context}

Provide your response in this exact format:
DESCRIPTION: [2-3 sentences explaining what needs to be done and why it's important]
REASONING: [2-3 sentences explaining the technical importance, potential impact, and priority rationale]"""

# =============================================================================
# DOCUMENT SUMMARY
# =============================================================================

DOCUMENT_SUMMARY_SYSTEM_PROMPT = "You are a technical documentation summarizer."

DOCUMENT_SUMMARY_PROMPT = """Summarize this documentation in 2-3 concise sentences. Focus on the key purpose and main topics covered.

Title: {title}

Content:
{content}

Provide only the summary, no preamble."""
