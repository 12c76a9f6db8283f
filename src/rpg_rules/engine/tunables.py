"""Tunables: the single immutable tree of balance constants.

Every rules function takes a Tunables value explicitly; nothing in the
package reads balance numbers from module globals. Overrides are merged
by ``build_tunables`` with a recursive merge whose behaviour per field is
fixed by the field's declared type:

* nested model fields merge recursively,
* ``dict`` fields merge key by key,
* everything else (scalars, tuples) is replaced wholesale.

Example:
    >>> tunables = build_tunables({"combat": {"crit_multiplier": 2.0}})
    >>> tunables.combat.crit_multiplier
    2.0
    >>> tunables.combat.variance_pct  # untouched siblings survive
    0.1
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, get_origin

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from rpg_rules.core.constants import RULE_VERSION
from rpg_rules.core.logging import get_logger
from rpg_rules.models.enums import Element, EquipmentSlot, Rarity, Stat, XpPreset


logger = get_logger(__name__)


class _TunablesModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Levels and XP
# =============================================================================


class PointGrant(_TunablesModel):
    """Extra points granted on reaching a milestone level."""

    stat_points: Annotated[int, Field(ge=0)] = 0
    skill_points: Annotated[int, Field(ge=0)] = 0


class XpCurve(_TunablesModel):
    """Coefficients of one XP curve.

    xp to next level = floor((base * level ** exponent + linear * level) * multiplier)
    """

    max_level: Annotated[int, Field(ge=1)]
    base: Annotated[float, Field(ge=0)]
    exponent: Annotated[float, Field(ge=0)]
    linear: Annotated[float, Field(ge=0)]
    multiplier: Annotated[float, Field(gt=0)]


class XpPresetTable(_TunablesModel):
    """One XP curve per named preset."""

    fast: XpCurve = XpCurve(max_level=60, base=60, exponent=1.18, linear=18, multiplier=0.8)
    standard: XpCurve = XpCurve(max_level=60, base=70, exponent=1.22, linear=22, multiplier=1.0)
    grindy: XpCurve = XpCurve(max_level=60, base=78, exponent=1.28, linear=30, multiplier=1.35)

    def get(self, preset: XpPreset | str) -> XpCurve:
        """Look up the curve of a preset."""
        return getattr(self, XpPreset(preset).value)


def _default_milestones() -> dict[int, PointGrant]:
    return {
        5: PointGrant(stat_points=2, skill_points=1),
        10: PointGrant(stat_points=2, skill_points=1),
        20: PointGrant(stat_points=3, skill_points=1),
        30: PointGrant(stat_points=3, skill_points=2),
        40: PointGrant(stat_points=4, skill_points=2),
        50: PointGrant(stat_points=4, skill_points=2),
    }


class LevelTunables(_TunablesModel):
    """Progression constants."""

    default_max_level: Annotated[int, Field(ge=1)] = 60
    stat_points_per_level: Annotated[int, Field(ge=0)] = 3
    skill_points_per_level: Annotated[int, Field(ge=0)] = 1
    milestone_bonuses: dict[int, PointGrant] = Field(default_factory=_default_milestones)
    xp_presets: XpPresetTable = Field(default_factory=XpPresetTable)


# =============================================================================
# Caps and Diminishing Returns
# =============================================================================


class CapTunables(_TunablesModel):
    """Hard clamp ranges for probability and percentage outputs."""

    crit_min: float = 0.0
    crit_max: float = 0.6
    hit_min: float = 0.05
    hit_max: float = 0.95
    speed_min: float = 1.0
    speed_max: float = 250.0
    resist_min: float = -0.5
    resist_max: float = 0.8
    crit_resist_max: Annotated[float, Field(ge=0)] = 0.7
    heal_bonus_max: Annotated[float, Field(ge=0)] = 2.0

    @model_validator(mode="after")
    def validate_ranges(self) -> "CapTunables":
        """Ensure no clamp range is inverted.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If a minimum exceeds its maximum.
        """
        for name in ("crit", "hit", "speed", "resist"):
            low, high = getattr(self, f"{name}_min"), getattr(self, f"{name}_max")
            if low > high:
                raise ValueError(f"{name}_min ({low}) must not exceed {name}_max ({high})")
        if not 0 <= self.hit_min <= self.hit_max <= 1:
            raise ValueError("hit chance caps must lie within [0, 1]")
        return self


class DiminishingCurve(_TunablesModel):
    """Soft and hard breakpoints of one diminishing-returns curve."""

    soft_cap: Annotated[float, Field(ge=0)]
    hard_cap: Annotated[float, Field(ge=0)]

    @model_validator(mode="after")
    def validate_breakpoints(self) -> "DiminishingCurve":
        """Ensure the soft cap does not exceed the hard cap."""
        if self.soft_cap > self.hard_cap:
            raise ValueError(f"soft_cap ({self.soft_cap}) must not exceed hard_cap ({self.hard_cap})")
        return self


class DiminishingReturnsTunables(_TunablesModel):
    """Curves applied to mitigation stats."""

    defense: DiminishingCurve = DiminishingCurve(soft_cap=180, hard_cap=420)
    magic_defense: DiminishingCurve = DiminishingCurve(soft_cap=180, hard_cap=420)
    resist: DiminishingCurve = DiminishingCurve(soft_cap=0.5, hard_cap=0.8)
    overflow_slope: float = 0.35


# =============================================================================
# Stats, Combat, Skills and Statuses
# =============================================================================


class StatTunables(_TunablesModel):
    """Per-point coefficients of the stat deriver."""

    hp_per_vit: float = 12.0
    hp_per_level: float = 8.0
    mp_per_int: float = 8.0
    mp_per_level: float = 4.0
    atk_per_str: float = 2.0
    matk_per_int: float = 2.0
    atk_per_level: float = 1.0
    def_per_vit: float = 1.5
    mdef_per_wis: float = 1.5
    acc_base: float = 75.0
    acc_per_dex: float = 1.2
    eva_base: float = 5.0
    eva_per_dex: float = 0.8
    crit_per_dex: float = 0.0015
    speed_base: float = 10.0
    speed_per_dex: float = 0.2
    crit_res_per_wis: float = 0.0008
    heal_bonus_per_wis: float = 0.01
    res_per_wis: float = 0.003
    element_res_per_wis: float = 0.0025
    barrier_base: float = 0.0


class CombatTunables(_TunablesModel):
    """Coefficients of the combat resolver."""

    hit_base: float = 0.0
    acc_per_point: float = 0.01
    crit_multiplier: Annotated[float, Field(ge=1)] = 1.5
    variance_pct: Annotated[float, Field(ge=0, lt=1)] = 0.1
    min_damage_on_hit: Annotated[int, Field(ge=0)] = 1
    physical_str_scale: Annotated[float, Field(ge=0)] = 0.01
    magical_int_scale: Annotated[float, Field(ge=0)] = 0.01
    mitigation_constant: Annotated[float, Field(gt=0)] = 100.0
    barrier_break_spillover: bool = True


class SkillTunables(_TunablesModel):
    """Defaults for skill cost and power formulas."""

    mp_cost_max: Annotated[float, Field(ge=0)] = 99.0
    default_mp_level_scale: Annotated[float, Field(ge=0)] = 0.08
    default_level_scale: Annotated[float, Field(ge=0)] = 0.45
    rank_power_weight: Annotated[float, Field(ge=0)] = 1.0


class StatusTunables(_TunablesModel):
    """Defaults for the status engine."""

    default_dot_scale: Annotated[float, Field(ge=0)] = 0.35
    default_hot_scale: Annotated[float, Field(ge=0)] = 0.3
    default_rank_tick: Annotated[float, Field(ge=0)] = 2.0
    default_intensity_cap: Annotated[int, Field(ge=1)] = 5
    cleanse_removes_control: bool = True


# =============================================================================
# Loot and Economy
# =============================================================================


class RarityTable(_TunablesModel):
    """One number per rarity tier; field order is tier order."""

    common: Annotated[float, Field(ge=0)]
    uncommon: Annotated[float, Field(ge=0)]
    rare: Annotated[float, Field(ge=0)]
    epic: Annotated[float, Field(ge=0)]
    legendary: Annotated[float, Field(ge=0)]
    mythic: Annotated[float, Field(ge=0)]

    def get(self, rarity: Rarity | str) -> float:
        """Look up the value of a tier."""
        return float(getattr(self, Rarity(rarity).value))

    def pairs(self) -> tuple[tuple[Rarity, float], ...]:
        """Tiers with their values in declaration order."""
        return tuple((rarity, self.get(rarity)) for rarity in Rarity)


class RarityCountTable(_TunablesModel):
    """One count per rarity tier."""

    common: Annotated[int, Field(ge=0)] = 0
    uncommon: Annotated[int, Field(ge=0)] = 1
    rare: Annotated[int, Field(ge=0)] = 2
    epic: Annotated[int, Field(ge=0)] = 3
    legendary: Annotated[int, Field(ge=0)] = 4
    mythic: Annotated[int, Field(ge=0)] = 5

    def get(self, rarity: Rarity | str) -> int:
        """Look up the count of a tier."""
        return int(getattr(self, Rarity(rarity).value))


class SlotTable(_TunablesModel):
    """One weight per equipment slot; field order is slot order."""

    weapon: Annotated[float, Field(ge=0)] = 1.2
    offhand: Annotated[float, Field(ge=0)] = 0.65
    head: Annotated[float, Field(ge=0)] = 0.85
    chest: Annotated[float, Field(ge=0)] = 1.0
    legs: Annotated[float, Field(ge=0)] = 0.9
    accessory1: Annotated[float, Field(ge=0)] = 0.85
    accessory2: Annotated[float, Field(ge=0)] = 0.85

    def get(self, slot: EquipmentSlot | str) -> float:
        """Look up the weight of a slot."""
        return float(getattr(self, EquipmentSlot(slot).value))


class ImplicitLine(_TunablesModel):
    """Stat every item of a slot carries, and its budget cost per point."""

    stat: Stat
    cost: Annotated[float, Field(gt=0)]


class SlotImplicitTable(_TunablesModel):
    """Implicit stat line per equipment slot."""

    weapon: ImplicitLine = ImplicitLine(stat=Stat.ATTACK, cost=1.0)
    offhand: ImplicitLine = ImplicitLine(stat=Stat.DEFENSE, cost=0.8)
    head: ImplicitLine = ImplicitLine(stat=Stat.MAGIC_DEFENSE, cost=0.8)
    chest: ImplicitLine = ImplicitLine(stat=Stat.HP, cost=0.25)
    legs: ImplicitLine = ImplicitLine(stat=Stat.DEFENSE, cost=0.8)
    accessory1: ImplicitLine = ImplicitLine(stat=Stat.ACCURACY, cost=0.75)
    accessory2: ImplicitLine = ImplicitLine(stat=Stat.MAGIC_ATTACK, cost=1.0)

    def get(self, slot: EquipmentSlot | str) -> ImplicitLine:
        """Look up the implicit line of a slot."""
        return getattr(self, EquipmentSlot(slot).value)


class AffixDefinition(_TunablesModel):
    """One entry of the affix pool.

    Exactly one of ``stat`` or ``element`` is set. ``cost`` is the budget
    spent per point of the stat (or per unit of resistance).
    """

    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    stat: Stat | None = None
    element: Element | None = None
    cost: Annotated[float, Field(gt=0)]

    @model_validator(mode="after")
    def validate_target(self) -> "AffixDefinition":
        """Ensure the affix targets exactly one stat or element."""
        if (self.stat is None) == (self.element is None):
            raise ValueError(f"affix {self.id!r} needs exactly one of stat or element")
        return self


DEFAULT_AFFIX_POOL: tuple[AffixDefinition, ...] = (
    AffixDefinition(id="power", label="of Power", stat=Stat.ATTACK, cost=1.0),
    AffixDefinition(id="fortitude", label="of Fortitude", stat=Stat.HP, cost=0.25),
    AffixDefinition(id="focus", label="of Focus", stat=Stat.MP, cost=0.33),
    AffixDefinition(id="swiftness", label="of Swiftness", stat=Stat.SPEED, cost=2.0),
    AffixDefinition(id="precision", label="of Precision", stat=Stat.ACCURACY, cost=0.75),
    AffixDefinition(id="evasion", label="of Evasion", stat=Stat.EVASION, cost=0.85),
    AffixDefinition(id="sorcery", label="of Sorcery", stat=Stat.MAGIC_ATTACK, cost=1.0),
    AffixDefinition(id="warding", label="of Warding", stat=Stat.MAGIC_DEFENSE, cost=0.8),
    AffixDefinition(id="fire_guard", label="of the Ember Guard", element=Element.FIRE, cost=150.0),
    AffixDefinition(id="ice_guard", label="of the Frost Guard", element=Element.ICE, cost=150.0),
    AffixDefinition(
        id="lightning_guard", label="of the Storm Guard", element=Element.LIGHTNING, cost=150.0
    ),
    AffixDefinition(id="poison_guard", label="of the Venom Guard", element=Element.POISON, cost=150.0),
)
"""Affixes a generated item can roll, without repetition per item."""


class LootTunables(_TunablesModel):
    """Loot tables and drop weighting."""

    rarity_weights: RarityTable = RarityTable(
        common=54, uncommon=24, rare=12, epic=6, legendary=3, mythic=1
    )
    rarity_stat_budget: RarityTable = RarityTable(
        common=12, uncommon=18, rare=27, epic=40, legendary=58, mythic=76
    )
    rarity_price_mult: RarityTable = RarityTable(
        common=1, uncommon=1.35, rare=1.9, epic=2.8, legendary=4.1, mythic=6
    )
    affix_count_by_rarity: RarityCountTable = Field(default_factory=RarityCountTable)
    budget_per_level: Annotated[float, Field(ge=0)] = 0.06
    affix_share_min: Annotated[float, Field(gt=0, le=1)] = 0.25
    affix_share_max: Annotated[float, Field(gt=0, le=1)] = 0.6
    affix_pool: tuple[AffixDefinition, ...] = DEFAULT_AFFIX_POOL
    slot_implicits: SlotImplicitTable = Field(default_factory=SlotImplicitTable)
    slot_base_weights: SlotTable = Field(default_factory=SlotTable)
    smart_drop_usable_bonus: Annotated[float, Field(ge=0)] = 1.45
    smart_drop_undergeared_bonus: Annotated[float, Field(ge=0)] = 1.3
    duplicate_avoidance_penalty: Annotated[float, Field(ge=0)] = 0.18
    gold_drop_base: Annotated[float, Field(ge=0)] = 16.0
    gold_drop_per_level: Annotated[float, Field(ge=0)] = 3.6
    gold_drop_spread: Annotated[float, Field(ge=0, lt=1)] = 0.25
    bind_on_equip_tier: Annotated[int, Field(ge=0)] = 3
    bind_on_pickup_tier: Annotated[int, Field(ge=0)] = 4

    @model_validator(mode="after")
    def validate_tables(self) -> "LootTunables":
        """Check that loot tables are mutually consistent.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: On inverted shares, an all-zero weight table or an
                affix count larger than the pool.
        """
        if self.affix_share_min > self.affix_share_max:
            raise ValueError("affix_share_min must not exceed affix_share_max")
        if sum(weight for _, weight in self.rarity_weights.pairs()) <= 0:
            raise ValueError("rarity_weights must contain at least one positive weight")
        largest = max(self.affix_count_by_rarity.get(rarity) for rarity in Rarity)
        if largest > len(self.affix_pool):
            raise ValueError(
                f"affix_count_by_rarity asks for {largest} affixes but the pool has "
                f"{len(self.affix_pool)}"
            )
        return self


class EconomyTunables(_TunablesModel):
    """Pricing constants.

    Attributes:
        price_per_level: Base value added per item level at generation.
        sell_rate: Share of the buy price a vendor pays back.
        buy_base_multiplier: Scale on an item's base value in shops.
        level_price_scale: Shop price growth per required level.
        inflation_per_act: Price growth per campaign act.
        inflation_per_chapter: Price growth per chapter.
    """

    price_per_level: Annotated[float, Field(ge=0)] = 2.4
    sell_rate: Annotated[float, Field(ge=0, le=1)] = 0.25
    buy_base_multiplier: Annotated[float, Field(gt=0)] = 1.0
    level_price_scale: Annotated[float, Field(ge=0)] = 0.085
    inflation_per_act: Annotated[float, Field(ge=0)] = 0.08
    inflation_per_chapter: Annotated[float, Field(ge=0)] = 0.03


# =============================================================================
# Root
# =============================================================================


class Tunables(_TunablesModel):
    """Every balance constant of the rules core.

    Attributes:
        rule_version: Version tag for compatibility checks on persisted data.
        levels: Progression constants.
        caps: Clamp ranges.
        diminishing_returns: Mitigation curves.
        stats: Stat deriver coefficients.
        combat: Combat resolver coefficients.
        skills: Skill formula defaults.
        statuses: Status engine defaults.
        loot: Loot tables.
        economy: Pricing constants.
    """

    rule_version: str = RULE_VERSION
    levels: LevelTunables = Field(default_factory=LevelTunables)
    caps: CapTunables = Field(default_factory=CapTunables)
    diminishing_returns: DiminishingReturnsTunables = Field(
        default_factory=DiminishingReturnsTunables
    )
    stats: StatTunables = Field(default_factory=StatTunables)
    combat: CombatTunables = Field(default_factory=CombatTunables)
    skills: SkillTunables = Field(default_factory=SkillTunables)
    statuses: StatusTunables = Field(default_factory=StatusTunables)
    loot: LootTunables = Field(default_factory=LootTunables)
    economy: EconomyTunables = Field(default_factory=EconomyTunables)


# =============================================================================
# Construction
# =============================================================================


class MergeMode(StrEnum):
    """How an override is combined with a field's current value."""

    MERGE = "merge"
    MERGE_KEYS = "merge_keys"
    REPLACE = "replace"


def merge_mode_for(annotation: Any) -> MergeMode:
    """Determine the merge behaviour of a field from its declared type.

    Args:
        annotation: Resolved field annotation.

    Returns:
        MERGE for nested models, MERGE_KEYS for dicts, REPLACE otherwise.
    """
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return MergeMode.MERGE
    if get_origin(annotation) is dict:
        return MergeMode.MERGE_KEYS
    return MergeMode.REPLACE


def _merge_model(current: BaseModel, overrides: Mapping[str, Any], path: str) -> BaseModel:
    model_cls = type(current)
    data = {name: getattr(current, name) for name in model_cls.model_fields}
    overridden: set[str] = set()

    for key, value in overrides.items():
        dotted = f"{path}.{key}" if path else str(key)
        field = model_cls.model_fields.get(key)
        if field is None:
            logger.warning("unknown tunables override ignored", key=dotted)
            continue

        overridden.add(key)
        mode = merge_mode_for(field.annotation)
        if mode == MergeMode.MERGE and isinstance(value, Mapping):
            data[key] = _merge_model(data[key], value, dotted)
        elif mode == MergeMode.MERGE_KEYS and isinstance(value, Mapping):
            data[key] = {**data[key], **value}
        else:
            data[key] = value

    while True:
        try:
            return model_cls.model_validate(data)
        except PydanticValidationError as exc:
            errors = exc.errors(include_url=False)
            rejected = {str(error["loc"][0]) for error in errors if error["loc"]} & overridden
            # Table-wide checks carry no field location: drop every override at this level.
            if not rejected:
                rejected = set(overridden)
            if not rejected:
                return current
            for key in sorted(rejected):
                logger.warning(
                    "invalid tunables override ignored",
                    key=f"{path}.{key}" if path else key,
                    error=errors[0]["msg"],
                )
                data[key] = getattr(current, key)
                overridden.discard(key)


def build_tunables(
    overrides: Mapping[str, Any] | None = None,
    *,
    base: Tunables | None = None,
) -> Tunables:
    """Build a Tunables value from defaults plus optional overrides.

    Missing override keys keep their defaults. Unknown keys are ignored
    with a warning, and so are values of the wrong type or values that
    break a table constraint: the field keeps its current value. Building
    never fails on bad overrides. Tuples (such as the affix pool) are replaced
    wholesale, never merged element-wise.

    Args:
        overrides: Nested mapping mirroring the Tunables schema.
        base: Starting value; the defaults when omitted.

    Returns:
        A new immutable Tunables value.

    Example:
        >>> build_tunables({"loot": {"rarity_weights": {"mythic": 0}}}).loot.rarity_weights.rare
        12.0
        >>> build_tunables({"combat": {"crit_multiplier": "lots"}}).combat.crit_multiplier
        1.5
    """
    tunables = base if base is not None else Tunables()
    if not overrides:
        return tunables
    merged = _merge_model(tunables, overrides, "")
    logger.debug("tunables built", override_keys=sorted(str(key) for key in overrides))
    return merged  # type: ignore[return-value]


def tunables_for_preset(
    preset: XpPreset | str,
    overrides: Mapping[str, Any] | None = None,
) -> Tunables:
    """Build tunables whose level cap follows an XP preset.

    Unknown preset names fall back to the standard curve with a warning.

    Args:
        preset: Preset name ('fast', 'standard' or 'grindy').
        overrides: Optional overrides applied before the preset.

    Returns:
        Tunables with ``levels.default_max_level`` taken from the preset.
    """
    tunables = build_tunables(overrides)
    try:
        key = XpPreset(str(preset).strip().lower())
    except ValueError:
        logger.warning("unknown xp preset, using standard", preset=preset)
        key = XpPreset.STANDARD

    curve = tunables.levels.xp_presets.get(key)
    levels = tunables.levels.model_copy(update={"default_max_level": curve.max_level})
    return tunables.model_copy(update={"levels": levels})


__all__ = [
    "PointGrant",
    "XpCurve",
    "XpPresetTable",
    "LevelTunables",
    "CapTunables",
    "DiminishingCurve",
    "DiminishingReturnsTunables",
    "StatTunables",
    "CombatTunables",
    "SkillTunables",
    "StatusTunables",
    "RarityTable",
    "RarityCountTable",
    "SlotTable",
    "ImplicitLine",
    "SlotImplicitTable",
    "AffixDefinition",
    "DEFAULT_AFFIX_POOL",
    "LootTunables",
    "EconomyTunables",
    "Tunables",
    "MergeMode",
    "merge_mode_for",
    "build_tunables",
    "tunables_for_preset",
]
