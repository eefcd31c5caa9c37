from enum import IntEnum

class Quality(IntEnum):
    BLACKOUT = 0
    INCORRECT = 1
    FAMILIAR = 2
    HARD = 3
    HESITANT = 4
    PERFECT = 5

QUALITY_LABELS = {
    Quality.BLACKOUT: "No recall",
    Quality.INCORRECT: "Recognized when shown",
    Quality.FAMILIAR: "Felt familiar",
    Quality.HARD: "Correct with effort",
    Quality.HESITANT: "Correct with hesitation",
    Quality.PERFECT: "Perfect recall",
}
