# steps.py
# Prompts for goal decomposition, step verification and per-step guidance
# Verification answers are classified by the COMPLETED: / NOT_COMPLETED: markers (see parsing.py)

PLAN_PROMPT = """Analyze this screenshot and create a detailed step-by-step plan to achieve the user's goal: "{goal}"

Based on what you see in the image and the OCR text, break down the task into specific, actionable steps. Each step should be:
1. Clear and specific about what element to interact with
2. Describe exactly what the user should click, type, or do
3. Include what change to expect after completing the step
4. Be sequential - each step should build on the previous one

OCR Text: {ocr_text}

Format your response as a JSON array of steps with this structure:
[
  {{
    "description": "Brief description of what this step accomplishes",
    "instruction": "Detailed instruction for the user",
    "targetElement": "Specific element to interact with (if applicable)",
    "expectedChange": "What should change on screen after this step"
  }}
]

Provide {min_steps}-{max_steps} steps maximum. Be very specific about UI elements you can see."""


VERIFY_PROMPT = """Analyze this screenshot to verify if the following step has been completed:

Step: {instruction}
Expected Change: {expected_change}
Target Element: {target_element}

OCR Text: {ocr_text}

Based on what you see in the current screenshot, has this step been successfully completed?

Respond with either:
- "COMPLETED: [brief explanation of what you see that confirms completion]"
- "NOT_COMPLETED: [brief explanation of what still needs to be done]"

Be specific about what you observe in the image."""


NEXT_STEP_GUIDANCE_PROMPT = """The user needs to complete this next step: "{instruction}"

Based on the current screenshot and OCR text, provide specific guidance on how to complete this step. Be very specific about:
1. What element to look for
2. Where it's located on the screen
3. What action to take
4. Any visual cues to help find the element

OCR Text: {ocr_text}

Keep the response concise but detailed enough for precise execution."""
