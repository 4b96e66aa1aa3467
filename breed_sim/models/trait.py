"""Gene, Allele, Chromosome, Mutation and TraitExpression models for breed_sim."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Dict, Optional, Any

from ..exceptions import ValidationError
from .phenotype import Color


HETEROZYGOSITY_TOLERANCE = 0.05


class TraitType(Enum):
    """Broad category a gene contributes to."""
    PHYSICAL = "PHYSICAL"
    MENTAL = "MENTAL"
    SOCIAL = "SOCIAL"
    COMBAT = "COMBAT"
    UTILITY = "UTILITY"
    METABOLIC = "METABOLIC"
    SENSORY = "SENSORY"
    REPRODUCTIVE = "REPRODUCTIVE"
    PERSONALITY = "PERSONALITY"
    MARKER = "MARKER"


# Base colours used when a trait is expressed; scaled by the expressed value.
TRAIT_COLORS: Dict[str, Color] = {
    'strength': Color(0.85, 0.20, 0.15),
    'vitality': Color(0.20, 0.75, 0.30),
    'agility': Color(0.95, 0.80, 0.20),
    'intelligence': Color(0.25, 0.40, 0.90),
    'adaptability': Color(0.55, 0.35, 0.80),
    'social': Color(0.95, 0.50, 0.70),
}

TYPE_COLORS: Dict[TraitType, Color] = {
    TraitType.PHYSICAL: Color(0.70, 0.55, 0.40),
    TraitType.MENTAL: Color(0.30, 0.45, 0.85),
    TraitType.SOCIAL: Color(0.90, 0.55, 0.70),
    TraitType.COMBAT: Color(0.80, 0.25, 0.20),
    TraitType.UTILITY: Color(0.40, 0.70, 0.70),
    TraitType.METABOLIC: Color(0.50, 0.75, 0.35),
    TraitType.SENSORY: Color(0.85, 0.75, 0.35),
    TraitType.REPRODUCTIVE: Color(0.85, 0.60, 0.50),
    TraitType.PERSONALITY: Color(0.60, 0.50, 0.75),
    TraitType.MARKER: Color(0.30, 0.95, 0.90),
}


def _check_unit(name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValidationError(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass(frozen=True)
class Allele:
    """One inherited version of a gene."""
    value: float  # 0.0 to 1.0
    dominance: float = 0.5  # How strongly this version is expressed over its partner

    def __post_init__(self):
        """Validate allele data."""
        _check_unit('allele value', self.value)
        _check_unit('allele dominance', self.dominance)


@dataclass(frozen=True)
class Mutation:
    """A permanent modifier recorded on a genome."""
    mutation_id: str
    name: str
    target_gene_id: str
    effect_strength: float
    is_beneficial: bool
    rarity: float  # 0 = common, 1 = extremely rare
    generation: int

    def __post_init__(self):
        """Validate mutation data."""
        _check_unit('effect_strength', self.effect_strength)
        _check_unit('rarity', self.rarity)
        if self.generation < 1:
            raise ValidationError(f"Mutation generation must be >= 1, got {self.generation}")

    @property
    def signed_effect(self) -> float:
        """Effect applied to the target trait: positive when beneficial."""
        return self.effect_strength if self.is_beneficial else -self.effect_strength


@dataclass(frozen=True)
class Gene:
    """A dominant/recessive allele pair and how strongly the dominant side shows."""
    gene_id: str
    dominant: Allele
    recessive: Allele
    expression_strength: float = 1.0
    is_active: bool = True
    trait_type: TraitType = TraitType.PHYSICAL

    def __post_init__(self):
        """Validate gene data."""
        if not self.gene_id:
            raise ValidationError("gene_id must be a non-empty string")
        _check_unit('expression_strength', self.expression_strength)

    def expressed_value(self) -> float:
        """
        Phenotypic value of this gene.

        Returns:
            ``dominant * s + recessive * (1 - s)`` for active genes, 0.0 otherwise
        """
        if not self.is_active:
            return 0.0
        s = self.expression_strength
        return self.dominant.value * s + self.recessive.value * (1.0 - s)

    def is_heterozygous(self) -> bool:
        return abs(self.dominant.value - self.recessive.value) > HETEROZYGOSITY_TOLERANCE

    def alleles(self) -> List[Allele]:
        return [self.dominant, self.recessive]

    def with_mutation(self, mutation: Mutation) -> 'Gene':
        """Return a new gene with the mutation applied to the dominant allele."""
        shifted = min(1.0, max(0.0, self.dominant.value + mutation.signed_effect))
        return replace(self, dominant=replace(self.dominant, value=shifted))

    @classmethod
    def from_alleles(
        cls,
        gene_id: str,
        first: Allele,
        second: Allele,
        is_active: bool = True,
        trait_type: TraitType = TraitType.PHYSICAL
    ) -> 'Gene':
        """
        Build a gene from two unordered alleles.

        The higher-dominance allele becomes dominant and the expression strength
        is its share of the combined dominance.
        """
        dominant, recessive = (first, second) if first.dominance >= second.dominance else (second, first)
        total = dominant.dominance + recessive.dominance
        strength = dominant.dominance / total if total > 0 else 0.5
        return cls(
            gene_id=gene_id,
            dominant=dominant,
            recessive=recessive,
            expression_strength=strength,
            is_active=is_active,
            trait_type=trait_type
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'Gene':
        """
        Create Gene from configuration dictionary.

        Args:
            config: Gene configuration dictionary with ``gene_id``, ``dominant``
                and ``recessive`` ({value, dominance}) entries

        Returns:
            Gene instance
        """
        trait_type_str = config.get('trait_type', 'PHYSICAL')
        try:
            trait_type = TraitType(trait_type_str)
        except ValueError:
            raise ValidationError(f"Invalid trait_type: {trait_type_str}") from None

        return cls(
            gene_id=config['gene_id'],
            dominant=Allele(**config['dominant']),
            recessive=Allele(**config['recessive']),
            expression_strength=config.get('expression_strength', 1.0),
            is_active=config.get('is_active', True),
            trait_type=trait_type
        )


@dataclass
class Chromosome:
    """Ordered collection of genes."""
    genes: List[Gene] = field(default_factory=list)
    is_sex_chromosome: bool = False

    def __post_init__(self):
        """Validate chromosome data."""
        seen = set()
        for gene in self.genes:
            if gene.gene_id in seen:
                raise ValidationError(f"Duplicate gene_id on chromosome: {gene.gene_id}")
            seen.add(gene.gene_id)

    @property
    def length(self) -> int:
        return len(self.genes)

    def get_gene(self, gene_id: str) -> Optional[Gene]:
        return next((g for g in self.genes if g.gene_id == gene_id), None)


@dataclass(frozen=True)
class TraitExpression:
    """Derived phenotype entry for one gene."""
    trait_id: str
    name: str
    value: float
    color: Color
    behavior_modifier: float
    stat_modifier: float

    @classmethod
    def from_gene(cls, gene: Gene) -> 'TraitExpression':
        """Derive the expression of a gene. Mutations are already carried by its alleles."""
        value = min(1.0, max(0.0, gene.expressed_value()))

        base = TRAIT_COLORS.get(gene.gene_id.lower(), TYPE_COLORS[gene.trait_type])
        return cls(
            trait_id=gene.gene_id,
            name=gene.gene_id.replace('_', ' ').title(),
            value=value,
            color=base.scaled(0.5 + value * 0.5),
            behavior_modifier=value - 0.5,
            stat_modifier=0.5 + value * 0.5
        )
