"""Caption prompt construction and parsing of the SHORT/LONG response contract."""

import re

from alttext.models.entities import CaptionRequest, Complexity

SHORT_PATTERN = re.compile(r"SHORT:\s*(.+?)(?=LONG:|$)", re.DOTALL)
LONG_PATTERN = re.compile(r"LONG:\s*(.+?)$", re.DOTALL)
SHORT_FALLBACK_LENGTH = 100

DETAIL_LEVELS = {
    Complexity.simple: "brief",
    Complexity.moderate: "detailed",
    Complexity.complex: "comprehensive",
}

FORMAT_INSTRUCTIONS = """ Respond with two parts:
1. SHORT: A concise caption (1-2 sentences)
2. LONG: A detailed description (2-4 sentences)

Format your response as:
SHORT: [brief caption]
LONG: [detailed description]"""


def build_prompt(request: CaptionRequest) -> str:
    """Instruction for a vision model: OCR grounding, image type, detail level and output format."""
    prompt = "Generate an accessible description for this image."
    if request.has_text and request.ocr_text:
        prompt += f' The image contains text that reads: "{request.ocr_text}".'
    prompt += f" This appears to be a {request.image_type.value}."
    prompt += f" Please provide a {DETAIL_LEVELS[request.complexity]} description."
    return prompt + FORMAT_INSTRUCTIONS


def parse_caption_response(content: str) -> tuple[str, str]:
    """
    Split a model response into (short_caption, long_description).

    Without markers the whole response is the long description and its first 100 characters
    the short caption.
    """
    short_match = SHORT_PATTERN.search(content)
    long_match = LONG_PATTERN.search(content)
    short = short_match.group(1).strip() if short_match else content[:SHORT_FALLBACK_LENGTH]
    long = long_match.group(1).strip() if long_match else content
    return short, long
