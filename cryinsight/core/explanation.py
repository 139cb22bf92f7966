"""
Explanation generator for CryInsight.

Renders a short caregiver-facing justification of an analysis result.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from cryinsight.core.models import CryCategory, FeatureVector

HIGH_CONFIDENCE: float = 0.75
MODERATE_CONFIDENCE: float = 0.60
TIP_CONFIDENCE: float = 0.60


@dataclass(frozen=True)
class CategoryInfo:
    """Presentation text for one cry category."""

    title: str
    description: str
    characteristics: Tuple[str, ...]
    caregiver_tips: Tuple[str, ...]


CATEGORY_INFO: Dict[CryCategory, CategoryInfo] = {
    CryCategory.HUNGRY: CategoryInfo(
        title="Hunger",
        description="Rhythmic, persistent cry that builds in intensity and may come in short bursts.",
        characteristics=(
            "Low-pitched, rhythmic pattern",
            "Builds gradually in intensity",
            "Often accompanied by rooting reflex or sucking motions",
            "May start and stop in short intervals",
        ),
        caregiver_tips=(
            "Offer feeding promptly",
            "Check when baby last ate",
            "Look for hunger cues: rooting, sucking on fists",
            "Feed in a calm, quiet environment",
        ),
    ),
    CryCategory.BELLY_PAIN: CategoryInfo(
        title="Belly Pain",
        description="Sudden, high-pitched, intense cry with little build-up and minimal pauses.",
        characteristics=(
            "High-pitched, piercing quality",
            "Sudden onset without warning",
            "Sustained intensity with few breaks",
            "May be accompanied by legs drawn up to the belly",
        ),
        caregiver_tips=(
            "Gently massage baby's tummy in a clockwise motion",
            "Try bicycling baby's legs to relieve gas",
            "Look for signs of illness (fever, swelling)",
            "Consult healthcare provider if persistent",
        ),
    ),
    CryCategory.BURPING: CategoryInfo(
        title="Burping",
        description="Short, agitated bursts with squirming, often shortly after a feed.",
        characteristics=(
            "Short, grunting bursts",
            "Sudden starts after feeding",
            "Squirming or arching of the back",
            "Eases once trapped air is released",
        ),
        caregiver_tips=(
            "Hold baby upright against your shoulder and pat gently",
            "Pause for burps during feeds",
            "Try sitting baby up with chin supported",
            "Keep baby upright for a few minutes after feeding",
        ),
    ),
    CryCategory.DISCOMFORT: CategoryInfo(
        title="Discomfort",
        description="Varied pitch with grunting sounds, often changing when position is altered.",
        characteristics=(
            "Variable pitch with occasional grunts",
            "Changes intensity with movement",
            "Whiny, continuous fussing",
            "Often stops when position changes",
        ),
        caregiver_tips=(
            "Check the diaper for wetness or soiling",
            "Look for uncomfortable clothing or positions",
            "Change baby's position or location",
            "Offer gentle massage or movement",
        ),
    ),
    CryCategory.COLD_HOT: CategoryInfo(
        title="Too Cold or Too Hot",
        description="Steady, whiny cry that grows louder while the temperature stays uncomfortable.",
        characteristics=(
            "Sustained, mid-pitched whimpering",
            "Grows louder over time",
            "Skin may feel clammy or cool",
            "Settles once temperature is corrected",
        ),
        caregiver_tips=(
            "Feel baby's neck or chest to check temperature",
            "Add or remove a layer of clothing",
            "Keep the room between 20 and 22 degrees Celsius",
            "Avoid direct drafts and heaters",
        ),
    ),
    CryCategory.LAUGH: CategoryInfo(
        title="Laughter",
        description="Bright, bouncy vocalisation with a regular, playful rhythm rather than distress.",
        characteristics=(
            "Short, repeating bursts of sound",
            "Regular, playful rhythm",
            "Open vowels and squeals",
            "Relaxed intensity",
        ),
        caregiver_tips=(
            "Keep playing - baby is enjoying the interaction",
            "Respond with smiles and talk to encourage bonding",
            "Watch for signs of overstimulation",
            "Enjoy the moment",
        ),
    ),
    CryCategory.LONELY: CategoryInfo(
        title="Loneliness",
        description="Soft, calling cry that slowly builds when baby wants company.",
        characteristics=(
            "Quiet start that slowly builds",
            "Calling, searching quality",
            "Pauses as if listening for a response",
            "Stops quickly when picked up",
        ),
        caregiver_tips=(
            "Pick baby up and hold them close",
            "Talk or sing softly to baby",
            "Try skin-to-skin contact",
            "Keep baby within sight during the day",
        ),
    ),
    CryCategory.NOISE: CategoryInfo(
        title="Background Noise",
        description="The recording is dominated by sounds that do not resemble a cry.",
        characteristics=(
            "Broad, unstructured sound",
            "No clear cry pitch",
            "Irregular energy pattern",
            "Likely household or environmental noise",
        ),
        caregiver_tips=(
            "Record again closer to baby",
            "Reduce background noise such as TV or fans",
            "Capture at least a few seconds of crying",
            "Check the microphone is not covered",
        ),
    ),
    CryCategory.SCARED: CategoryInfo(
        title="Fear",
        description="Abrupt, shrill, agitated cry that starts at full strength.",
        characteristics=(
            "Sharp, shrill quality",
            "Starts suddenly at full volume",
            "Agitated with gasping breaths",
            "Often follows a loud sound or sudden movement",
        ),
        caregiver_tips=(
            "Hold baby close and speak in a calm voice",
            "Remove or reduce the startling stimulus",
            "Swaddle younger babies for a sense of security",
            "Use gentle rocking to soothe",
        ),
    ),
    CryCategory.SILENCE: CategoryInfo(
        title="Silence",
        description="Little or no sound was captured in the recording.",
        characteristics=(
            "Very low sound level",
            "No detectable cry pattern",
            "Flat energy throughout",
            "Possibly a quiet or settled baby",
        ),
        caregiver_tips=(
            "Check the microphone and record again",
            "Hold the device closer to baby",
            "Record while baby is actively crying",
            "Make sure recording permissions are granted",
        ),
    ),
    CryCategory.TIRED: CategoryInfo(
        title="Sleepiness",
        description="Whiny, intermittent cry that builds and fades, often with yawning and eye-rubbing.",
        characteristics=(
            "Lower intensity, whiny quality",
            "Intermittent fading pattern",
            "Often accompanied by yawning or eye-rubbing",
            "May include fussiness or restlessness",
        ),
        caregiver_tips=(
            "Create a calm, dimly lit environment",
            "Establish a consistent sleep routine",
            "Swaddle younger babies if appropriate",
            "Use gentle motion like rocking or swaying",
        ),
    ),
}


def confidence_band(confidence: float) -> str:
    """Word describing how strong the evidence is."""
    if confidence > HIGH_CONFIDENCE:
        return "high"
    if confidence > MODERATE_CONFIDENCE:
        return "moderate"
    return "possible"


def _pitch_callout(features: FeatureVector) -> str:
    return f"I detected a dominant pitch around {features.pitch_hz:.0f} Hz"


def _rhythm_callout(features: FeatureVector) -> str:
    rhythm = features.rhythm
    if rhythm.pulse_count >= 2:
        return (
            f"I detected {rhythm.pulse_count} cry bursts at roughly "
            f"{rhythm.tempo_bpm:.0f} per minute with {rhythm.regularity_score:.0%} regularity"
        )
    return f"I detected an irregular pattern with {rhythm.pulse_count} distinct burst(s)"


def _growth_callout(features: FeatureVector) -> str:
    trend = features.intensity.growth_trend
    direction = "rising" if trend > 0 else "falling" if trend < 0 else "steady"
    return f"I detected {direction} intensity over the recording (trend {trend:+.3f})"


def _loudness_callout(features: FeatureVector) -> str:
    intensity = features.intensity
    return (
        f"I detected a loud signal (RMS {intensity.rms:.2f}) "
        f"spanning a {intensity.dynamic_range:.2f} amplitude range"
    )


def _quiet_callout(features: FeatureVector) -> str:
    return f"I detected a low overall level (RMS {features.intensity.rms:.3f})"


CALLOUTS: Dict[CryCategory, Callable[[FeatureVector], str]] = {
    CryCategory.HUNGRY: _rhythm_callout,
    CryCategory.BELLY_PAIN: _loudness_callout,
    CryCategory.BURPING: _pitch_callout,
    CryCategory.DISCOMFORT: _pitch_callout,
    CryCategory.COLD_HOT: _growth_callout,
    CryCategory.LAUGH: _rhythm_callout,
    CryCategory.LONELY: _growth_callout,
    CryCategory.NOISE: _pitch_callout,
    CryCategory.SCARED: _loudness_callout,
    CryCategory.SILENCE: _quiet_callout,
    CryCategory.TIRED: _quiet_callout,
}


class ExplanationGenerator:
    """Pure text renderer; holds no per-analysis state."""

    def __init__(self, category_info: Optional[Dict[CryCategory, CategoryInfo]] = None):
        self.category_info = category_info or CATEGORY_INFO

    def explain(
        self,
        category: CryCategory,
        confidence: float,
        features: FeatureVector,
        duration: float
    ) -> str:
        """Explanation citing a measured feature of the recording."""
        callout = CALLOUTS[category](features)
        return self._compose(
            category, confidence, duration,
            f"{callout}, which is typically associated with this type of cry."
        )

    def explain_without_features(
        self,
        category: CryCategory,
        confidence: float,
        duration: float,
        rng: Optional[np.random.Generator] = None
    ) -> str:
        """Explanation for estimates made without measured features."""
        info = self.category_info[category]
        if rng is None:
            characteristic = info.characteristics[0]
        else:
            characteristic = info.characteristics[int(rng.integers(len(info.characteristics)))]
        return self._compose(
            category, confidence, duration,
            f"The recording suggests a {characteristic.lower()}, "
            f"which is typically associated with this type of cry."
        )

    def _compose(
        self,
        category: CryCategory,
        confidence: float,
        duration: float,
        observation: str
    ) -> str:
        info = self.category_info[category]
        parts = [
            f"Based on {duration:.1f} seconds of audio, this cry shows "
            f"{confidence_band(confidence)} indicators of a {info.title.lower()} cry.",
            info.description,
            observation,
        ]
        if confidence > TIP_CONFIDENCE:
            parts.append(f"Tip: {info.caregiver_tips[0]}.")
        return " ".join(parts)
