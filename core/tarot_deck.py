"""Rider-Waite-Smith 78-card deck (stable order, ids 0..77)."""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from core.schema import FrozenModel


class TarotCard(FrozenModel):
    id: int
    name: str
    arcana: Literal["major", "minor"]
    suit: Optional[str] = None
    rank: str
    meaning_up: str
    meaning_rev: str


# (name, upright, reversed)
_MAJORS: Tuple[Tuple[str, str, str], ...] = (
    ("The Fool", "New beginnings, spontaneity, a leap of faith.", "Recklessness, hesitation, risk taken blindly."),
    ("The Magician", "Willpower, skill, resources aligned to a goal.", "Manipulation, scattered talent, untapped potential."),
    ("The High Priestess", "Intuition, inner knowledge, quiet mystery.", "Secrets withheld, ignoring the inner voice."),
    ("The Empress", "Abundance, nurture, creative growth.", "Dependence, creative block, neglect of self."),
    ("The Emperor", "Structure, authority, stability.", "Rigidity, domination, loss of control."),
    ("The Hierophant", "Tradition, guidance, shared belief.", "Rebellion, unconventional paths, dogma questioned."),
    ("The Lovers", "Union, harmony, a values-based choice.", "Imbalance, misalignment, a choice avoided."),
    ("The Chariot", "Determination, momentum, victory through focus.", "Lack of direction, opposing forces, stalled progress."),
    ("Strength", "Courage, compassion, quiet resilience.", "Self-doubt, low energy, raw emotion unchecked."),
    ("The Hermit", "Introspection, solitude, inner guidance.", "Isolation, withdrawal, refusing counsel."),
    ("Wheel of Fortune", "Cycles, turning points, fortunate change.", "Resistance to change, setbacks, bad timing."),
    ("Justice", "Fairness, truth, cause and effect.", "Dishonesty, imbalance, avoided accountability."),
    ("The Hanged Man", "Pause, surrender, a new perspective.", "Stalling, indecision, needless sacrifice."),
    ("Death", "Endings, transformation, clearing space.", "Resisting change, lingering in the past."),
    ("Temperance", "Balance, moderation, patient blending.", "Excess, impatience, discord."),
    ("The Devil", "Attachment, temptation, material bonds.", "Release, breaking free, reclaiming power."),
    ("The Tower", "Sudden upheaval, revelation, collapse of illusions.", "Averted disaster, fear of change, delayed reckoning."),
    ("The Star", "Hope, renewal, serenity.", "Discouragement, lost faith, disconnection."),
    ("The Moon", "Illusion, intuition, the unconscious.", "Confusion lifting, repressed fears surfacing."),
    ("The Sun", "Joy, success, vitality.", "Temporary gloom, dimmed enthusiasm."),
    ("Judgement", "Reckoning, awakening, an inner calling.", "Self-doubt, harsh self-judgement, ignoring the call."),
    ("The World", "Completion, integration, accomplishment.", "Unfinished business, shortcuts, lack of closure."),
)

# suit -> (display name, domain)
_SUITS: Tuple[Tuple[str, str, str], ...] = (
    ("wands", "Wands", "drive and creativity"),
    ("cups", "Cups", "emotions and relationships"),
    ("swords", "Swords", "thought and conflict"),
    ("pentacles", "Pentacles", "work and material security"),
)

# rank key -> (display name, upright theme, reversed theme)
_RANKS: Tuple[Tuple[str, str, str, str], ...] = (
    ("ace", "Ace", "A fresh start", "A delayed start"),
    ("2", "Two", "Balance and choices", "Indecision"),
    ("3", "Three", "Growth and collaboration", "Friction within a group"),
    ("4", "Four", "Stability and rest", "Stagnation"),
    ("5", "Five", "Conflict and loss", "Recovery after strife"),
    ("6", "Six", "Harmony and generosity", "Imbalanced give and take"),
    ("7", "Seven", "Assessment and perseverance", "Doubt and distraction"),
    ("8", "Eight", "Movement and mastery", "Restriction"),
    ("9", "Nine", "Near fulfilment", "Anxiety over the outcome"),
    ("10", "Ten", "Culmination", "Burden of completion"),
    ("page", "Page", "Curiosity and a message", "Immaturity"),
    ("knight", "Knight", "Action and pursuit", "Haste"),
    ("queen", "Queen", "Mature care", "Insecurity"),
    ("king", "King", "Mastery and leadership", "Misused authority"),
)


def _build_deck() -> Tuple[TarotCard, ...]:
    deck: List[TarotCard] = []
    for number, (name, upright, reversed_) in enumerate(_MAJORS):
        deck.append(
            TarotCard(
                id=number,
                name=name,
                arcana="major",
                rank=str(number),
                meaning_up=upright,
                meaning_rev=reversed_,
            )
        )

    for suit_key, suit_name, domain in _SUITS:
        for rank_key, rank_name, upright, reversed_ in _RANKS:
            deck.append(
                TarotCard(
                    id=len(deck),
                    name=f"{rank_name} of {suit_name}",
                    arcana="minor",
                    suit=suit_key,
                    rank=rank_key,
                    meaning_up=f"{upright} in {domain}.",
                    meaning_rev=f"{reversed_} in {domain}.",
                )
            )

    if len(deck) != 78:
        raise RuntimeError(f"deck should hold 78 cards, got {len(deck)}")
    return tuple(deck)


TAROT_DECK: Tuple[TarotCard, ...] = _build_deck()
