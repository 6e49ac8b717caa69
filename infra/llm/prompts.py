PARSE_RESUME_PROMPT = """
Parse the following resume text and extract structured information.

Return ONLY strict JSON with this structure:
{{
  "personal_info": {{
    "first_name": "string",
    "last_name": "string",
    "email": "string",
    "phone": "string or null",
    "location": "string or null",
    "linkedin": "string or null",
    "github": "string or null",
    "portfolio": "string or null"
  }},
  "education": [
    {{"institution": "string", "degree": "string", "field": "string",
      "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD or null",
      "gpa": "number or null", "description": "string or null"}}
  ],
  "experience": [
    {{"company": "string", "position": "string",
      "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD or null",
      "description": "string", "achievements": ["string"], "technologies": ["string"]}}
  ],
  "skills": [
    {{"name": "string", "level": "beginner|intermediate|advanced|expert",
      "category": "technical|soft|language|tool|framework",
      "years_of_experience": "number or null"}}
  ],
  "certifications": [
    {{"name": "string", "issuer": "string", "date": "YYYY-MM-DD",
      "expiry_date": "YYYY-MM-DD or null", "credential_id": "string or null"}}
  ],
  "languages": [
    {{"name": "string", "proficiency": "basic|conversational|fluent|native"}}
  ],
  "summary": "string or null"
}}

Rules:
- Use only information present in the text. Do NOT invent employers, dates or skills.
- Leave unknown optional fields as null and unknown lists empty.

Resume text:
{text}
"""


ANALYZE_RESUME_PROMPT = """
Analyze the following resume data and provide insights about the candidate.

Return ONLY strict JSON:
{{
  "summary": "brief summary of the candidate's profile",
  "strengths": ["key strengths"],
  "weaknesses": ["areas for improvement"],
  "recommendations": ["recommendations"],
  "skill_gaps": [
    {{"skill": "string", "current_level": "beginner|intermediate|advanced|expert",
      "required_level": "beginner|intermediate|advanced|expert",
      "upskilling_suggestions": ["string"], "estimated_time_to_upskill": "string"}}
  ],
  "bias_analysis": {{
    "detected": true,
    "types": ["gender|age|ethnicity|education|location|experience"],
    "confidence": <float between 0 and 1>,
    "mitigation_suggestions": ["string"]
  }},
  "sentiment_score": <float between 0 and 1>,
  "communication_score": <float between 0 and 1 or null>
}}

Resume data:
{resume}
"""


EXTRACT_SKILLS_PROMPT = """
Extract and categorize all skills from the following resume data.

Return ONLY strict JSON:
{{
  "technical_skills": ["string"],
  "soft_skills": ["string"],
  "languages": ["string"],
  "tools": ["string"],
  "frameworks": ["string"],
  "certifications": ["string"],
  "skill_levels": {{"<skill name>": "beginner|intermediate|advanced|expert"}}
}}

Resume data:
{resume}
"""


VALIDATE_RESUME_PROMPT = """
Validate the following resume data for completeness, consistency and quality.

Return ONLY strict JSON:
{{
  "is_valid": true,
  "completeness": <float between 0 and 1>,
  "consistency": <float between 0 and 1>,
  "quality": <float between 0 and 1>,
  "issues": [
    {{"type": "missing|inconsistent|low_quality|suspicious", "field": "string",
      "description": "string", "severity": "low|medium|high"}}
  ],
  "suggestions": ["string"],
  "overall_score": <float between 0 and 1>
}}

Resume data:
{resume}
"""


MATCH_RESUME_PROMPT = """
Match the following resume against the job description and requirements.

Evaluation rules:
- Base every judgment ONLY on the resume data and the job material below.
- Do NOT infer skills the resume does not state.
- Be consistent: high scores require multiple strong, explicit matches.

Return ONLY strict JSON:
{{
  "overall_score": <number between 0 and 100>,
  "skill_match": <number between 0 and 100>,
  "experience_match": <number between 0 and 100>,
  "education_match": <number between 0 and 100>,
  "cultural_fit": <number between 0 and 100>,
  "skill_breakdown": [
    {{"skill": "string", "required": true,
      "candidate_level": "beginner|intermediate|advanced|expert",
      "required_level": "beginner|intermediate|advanced|expert",
      "score": <number between 0 and 100>, "gap": <number>}}
  ],
  "strengths": ["string"],
  "weaknesses": ["string"],
  "recommendations": ["string"],
  "fit_level": "excellent|good|average|poor"
}}

Resume data:
{resume}

Job description:
{description}

Job requirements:
{requirements}
"""


DETECT_BIAS_PROMPT = """
Analyze the following recruitment text for potential biases.

Return ONLY strict JSON:
{{
  "detected": true,
  "types": ["gender|age|ethnicity|education|location|experience"],
  "confidence": <float between 0 and 1>,
  "mitigation_suggestions": ["string"],
  "biased_phrases": ["string"],
  "recommendations": ["string"]
}}

Text to analyze:
{text}
"""


INTERVIEW_QUESTIONS_PROMPT = """
Generate relevant interview questions based on the resume and the job requirements.

Return ONLY strict JSON:
{{
  "technical_questions": [
    {{"question": "string", "difficulty": "easy|medium|hard", "category": "string", "expected_answer": "string"}}
  ],
  "behavioral_questions": [
    {{"question": "string", "category": "string", "what_to_look_for": "string"}}
  ],
  "situational_questions": [
    {{"question": "string", "scenario": "string", "expected_outcome": "string"}}
  ],
  "cultural_fit_questions": [
    {{"question": "string", "purpose": "string"}}
  ]
}}

Resume data:
{resume}

Job requirements:
{requirements}
"""
