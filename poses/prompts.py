"""
Choreographer prompt construction.

Pure functions of (gender, style preset, which outfits are present). The
pose template each prompt demands re-uses the synthesis image numbering,
so "Image N" in a chosen pose maps straight onto the synthesis
image_input order.
"""
from typing import Optional

POSE_PRESETS = {
    "casual": "Casual/Relaxed",
    "editorial": "Editorial/High Fashion",
    "commercial": "Commercial/Catalog",
    "lifestyle": "Lifestyle/Candid",
    "power": "Power/Corporate",
    "romantic": "Romantic/Soft",
    "athletic": "Athletic/Dynamic",
    "seated": "Seated/Lounge",
}

GENDER_OPTIONS = {
    "male": "Male",
    "female": "Female",
    "nonbinary": "Non-binary",
}

DEFAULT_PRESET = "casual"

# Steering text for a single model
PRESET_DESCRIPTIONS = {
    "casual": "Natural, everyday poses (leaning, hands in pockets, relaxed stance)",
    "editorial": "Dramatic angles, elongated limbs, avant-garde positioning",
    "commercial": "Clean, product-focused poses showcasing outfit clearly",
    "lifestyle": "In-motion shots, laughing, walking, natural interactions",
    "power": "Confident stances, crossed arms, authoritative positioning",
    "romantic": "Gentle movements, flowing poses, dreamy expressions",
    "athletic": "Action poses, mid-stride, jumping, athletic stances",
    "seated": "Sitting on steps, benches, ground, relaxed seated positions",
}

# Shorter steering text for duos
DUAL_PRESET_DESCRIPTIONS = {
    "casual": "Natural, everyday poses",
    "editorial": "Dramatic angles, avant-garde positioning",
    "commercial": "Clean, product-focused poses",
    "lifestyle": "In-motion, natural interactions",
    "power": "Confident, authoritative positioning",
    "romantic": "Gentle movements, flowing poses",
    "athletic": "Action poses, dynamic stances",
    "seated": "Relaxed seated positions",
}


def build_user_prompt(has_outfit: bool) -> str:
    if has_outfit:
        return (
            "Analyze the background image (Image 1) and outfit image (Image 2) "
            "to generate 5 pose suggestions that complement this outfit."
        )
    return "Analyze this background image and generate 5 pose suggestions."


def build_dual_user_prompt(has_outfits: bool) -> str:
    if has_outfits:
        return (
            "Analyze the background image and outfit images to generate 5 duo pose "
            "suggestions that complement the outfits."
        )
    return "Analyze this background image and generate 5 duo pose suggestions for two models."


def build_system_prompt(gender: str, preset: str, has_outfit: bool = False) -> str:
    preset_desc = PRESET_DESCRIPTIONS.get(preset, PRESET_DESCRIPTIONS[DEFAULT_PRESET])

    outfit_instruction = ""
    outfit_context = ""
    if has_outfit:
        outfit_instruction = (
            " Consider the outfit style from Image 2 when suggesting poses - "
            "ensure poses highlight the clothing's best features."
        )
        outfit_context = (
            "\n- Image 2 contains the outfit the model will wear. Analyze the outfit style "
            "(formal, casual, sporty, elegant, etc.) and tailor poses to complement and "
            "showcase it effectively."
        )

    return f"""You are a Senior Fashion Editorial Choreographer analyzing background images for realistic pose placement.{outfit_instruction}

Your task: Generate 5 distinct, professional poses for a {gender} model appropriate for the '{preset}' style ({preset_desc}).

Constraints:
- Image 1 is the background. Identify walkable/sit-able areas in the background (steps, ground, walls, furniture).{outfit_context}
- Tailor poses to be gender-appropriate.
- All poses must align with the {preset} style.
- Output ONLY a valid JSON array of 5 strings.
- Each string must follow this exact format: "The {gender} model from [Image 1] in the [Image 2] outfit is [POSE DESCRIPTION] in [Image 3]; 85mm lens."

Example output format:
[
  "The {gender} model from [Image 1] in the [Image 2] outfit is leaning against the brick wall with one hand in pocket in [Image 3]; 85mm lens.",
  "The {gender} model from [Image 1] in the [Image 2] outfit is walking confidently down the steps in [Image 3]; 85mm lens."
]"""


def build_dual_system_prompt(
    gender_a: str,
    gender_b: str,
    preset: str,
    has_outfit_a: bool = False,
    has_outfit_b: bool = False,
) -> str:
    preset_desc = DUAL_PRESET_DESCRIPTIONS.get(preset, DUAL_PRESET_DESCRIPTIONS[DEFAULT_PRESET])

    # Outfits are numbered after the background, in A-then-B order, only if present
    outfit_context = ""
    outfit_instruction = ""
    if has_outfit_a and has_outfit_b:
        outfit_context = (
            "\n- Image 2 shows Model A's outfit, Image 3 shows Model B's outfit. Analyze both "
            "outfit styles and suggest poses that complement and coordinate both looks."
        )
        outfit_instruction = (
            " Consider the outfit styles when suggesting poses - ensure poses highlight "
            "both outfits effectively and create visual harmony."
        )
    elif has_outfit_a:
        outfit_context = (
            "\n- Image 2 shows Model A's outfit. Analyze the outfit style and ensure "
            "Model A's poses showcase it effectively."
        )
        outfit_instruction = " Consider Model A's outfit style when suggesting poses."
    elif has_outfit_b:
        outfit_context = (
            "\n- Image 2 shows Model B's outfit. Analyze the outfit style and ensure "
            "Model B's poses showcase it effectively."
        )
        outfit_instruction = " Consider Model B's outfit style when suggesting poses."

    return f"""You are a Senior Fashion Editorial Choreographer analyzing background images for realistic duo pose placement.{outfit_instruction}

Your task: Generate 5 distinct, professional duo poses for two models:
- Model A: {gender_a}
- Model B: {gender_b}

Style: '{preset}' ({preset_desc})

Constraints:
- Image 1 is the background. Identify valid positions for two people.{outfit_context}
- Tailor poses to be gender-appropriate.
- All poses must align with the {preset} style.
- For mixed-gender pairs, consider classic editorial dynamics (complementary body language, height differences).
- Poses should show realistic interaction (conversation, walking together, one seated/one standing).
- Output ONLY a valid JSON array of 5 strings.
- Each string must follow: "The {gender_a} model from [Image 1] in the [Image 2] outfit is [POSE_A], while the {gender_b} model from [Image 3] in the [Image 4] outfit is [POSE_B] in [Image 5]; 85mm lens.\""""


def choreographer_input(
    system_prompt: str,
    prompt: str,
    background_url: str,
    *outfit_urls: Optional[str],
) -> dict:
    """Model input for the choreographer: background first, then supplied outfits."""
    image_input = [background_url] + [url for url in outfit_urls if url]
    return {
        "system_prompt": system_prompt,
        "prompt": prompt,
        "image_input": image_input,
        "reasoning_effort": "minimal",
        "verbosity": "low",
    }
