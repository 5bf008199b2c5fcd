"""
Prompt templates for the detection and remedy stages.
"""
from app.models import NO_DISEASE, UNKNOWN_PLANT

# =============================================================================
# Detection
# =============================================================================
DETECTION_SYSTEM_PROMPT = """You are an expert in plant pathology. Answer with JSON only (no ```json fences).
Return exactly these fields:
{"plantName": string, "disease": string, "confidence": number between 0 and 1}"""

DETECTION_PROMPT = f"""Analyze the provided image of the plant and identify the plant, and any potential diseases.

Respond with the detected plant name, detected disease and a confidence score.
If no disease is detected, set disease to "{NO_DISEASE}" and return a confidence of 1.0.
If you cannot identify the plant, set plantName to "{UNKNOWN_PLANT}"."""

# =============================================================================
# Remedies
# =============================================================================
REMEDY_SYSTEM_PROMPT = """You are an expert in plant diseases and remedies. Answer with JSON only (no ```json fences).
Return these fields:
{"possibleCauses": [string], "remedies": [string], "supplements": [string] (optional)}"""

MAINTENANCE_PROMPT = """Given the following description of the plant and its environment:
{plant_description}

Please suggest possible causes and remedies for how to maintain this plant and keep it healthy."""

DISEASE_REMEDY_PROMPT = """You have identified that a plant has the following disease: {disease}.

Given the following description of the plant and its environment:
{plant_description}

Please suggest possible causes, remedies, and supplements for this disease.

For each supplement, provide instructions on how to use them for the disease to make the plant healthy."""


def build_remedy_prompt(disease: str, plant_description: str) -> str:
    """Pick the maintenance or treatment template depending on the disease sentinel"""
    if disease == NO_DISEASE:
        return MAINTENANCE_PROMPT.format(plant_description=plant_description)
    return DISEASE_REMEDY_PROMPT.format(disease=disease, plant_description=plant_description)
