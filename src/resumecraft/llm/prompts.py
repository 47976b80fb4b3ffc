from __future__ import annotations

OPTIMIZE_RESUME_PROMPT = """
You are an expert resume writer specializing in tailoring resumes to specific job
descriptions and optimizing them for applicant tracking systems (ATS).

Rewrite the attached resume to be ATS-friendly and highlight the skills and
experiences most relevant to the job description.

Return strict JSON with keys:
- optimized_resume: string. A Markdown version of the resume. Highlight every
  change: use <ins> for additions and <del> for deletions, for example
  "I have experience with <del>React</del><ins>React.js</ins>." Preserve the
  original structure as much as possible.
- optimized_resume_latex: string. A full, compilable LaTeX document (article
  class) with all changes applied and no change highlighting.

{resume_section}

Job Description:
{job_description}
""".strip()

COVER_LETTER_PROMPT = """
You are an expert cover letter writer. Write a cover letter in strict,
professional business letter format:

1. The applicant's contact information, one item per line:
{contact_block}
2. Today's date as Month Day, Year.
3. Recipient block: hiring manager name (or "Hiring Manager"), title, company
   name and company address when known from the job description.
4. Salutation: "Dear [Hiring Manager Name],".
5. Body: an introduction naming the position; two paragraphs matching the most
   relevant resume experience to the key requirements with specific examples;
   a closing paragraph requesting an interview.
6. "Sincerely," followed by the applicant's typed name: {name}

The tone must be professional and confident. Do not add commentary.

Return strict JSON with keys:
- cover_letter: string

{resume_section}

Job Description:
{job_description}
""".strip()

EXTRACT_SKILLS_PROMPT = """
You extract the key skills a candidate needs from a job description.
Return strict JSON with keys:
- skills: string[] (short skill names, most important first, no duplicates)

Job Description:
{job_description}
""".strip()

CREATE_RESUME_PROMPT = """
You are an expert resume writer. Create a professional, well-formatted resume
from the structured information below. Start experience bullets with action
verbs and quantify achievements whenever possible.

Return strict JSON with keys:
- resume_markdown: string (the full resume in Markdown)
- resume_latex: string (a clean, compilable LaTeX article document)

Candidate information JSON:
{candidate_json}
""".strip()

RESUME_ATTACHED = "Resume: see the attached file."

RESUME_INLINE = """
Resume:
{resume_text}
""".strip()
