"""
Species Reference Table

Static mapping between scientific and common names for the species the
service knows about, with reverse lookup and fuzzy substring matching.

The tables are loaded once at import time into read-only mappings and are
never written afterwards, so a single instance is safe to share between
concurrent identification requests.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


BINOMIAL_PATTERN = re.compile(r"^[A-Z][a-z]+ [a-z]+$")

# Binomial (optionally with a variety) embedded anywhere in free text
EMBEDDED_BINOMIAL_PATTERN = re.compile(r"\b([A-Z][a-z]+\s+[a-z]+(?:\s+var\.\s+[a-z]+)?)\b")

# Summaries usually introduce the binomial in parentheses: "The rock dove (Columba livia) ..."
PARENTHESIZED_BINOMIAL_PATTERN = re.compile(r"\(\s*([A-Z][a-z]+\s+[a-z]+(?:\s+var\.\s+[a-z]+)?)\s*[,;)]")

# "species: Felis catus", "Scientific name: Felis catus"
LABELLED_BINOMIAL_PATTERN = re.compile(
    r"(?:species|scientific name|name):\s*([A-Z][a-z]+\s+[a-z]+(?:\s+var\.\s+[a-z]+)?)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ReferenceEntry:
    """Single row of the reference table."""
    scientific_name: str
    common_name: str


_SPECIES: Tuple[Tuple[str, str], ...] = (
    # Mammals
    ("Felis catus", "Domestic Cat"),
    ("Canis lupus familiaris", "Domestic Dog"),
    ("Panthera leo", "Lion"),
    ("Panthera tigris", "Tiger"),
    ("Panthera pardus", "Leopard"),
    ("Acinonyx jubatus", "Cheetah"),
    ("Loxodonta africana", "African Elephant"),
    ("Giraffa camelopardalis", "Giraffe"),
    ("Equus quagga", "Zebra"),
    ("Equus ferus caballus", "Horse"),
    ("Bos taurus", "Cow"),
    ("Ovis aries", "Sheep"),
    ("Capra aegagrus hircus", "Goat"),
    ("Sus scrofa domesticus", "Domestic Pig"),
    ("Vulpes vulpes", "Red Fox"),
    ("Canis lupus", "Wolf"),
    ("Ursus arctos", "Brown Bear"),
    ("Ailuropoda melanoleuca", "Giant Panda"),
    ("Phascolarctos cinereus", "Koala"),
    ("Macropus rufus", "Red Kangaroo"),
    ("Cervus elaphus", "Red Deer"),

    # Birds
    ("Aquila chrysaetos", "Golden Eagle"),
    ("Bubo bubo", "Eurasian Eagle-Owl"),
    ("Columba livia", "Rock Pigeon"),
    ("Anas platyrhynchos", "Mallard Duck"),
    ("Anser anser", "Greylag Goose"),
    ("Cygnus olor", "Mute Swan"),
    ("Gallus gallus domesticus", "Chicken"),
    ("Meleagris gallopavo", "Wild Turkey"),

    # Reptiles & amphibians
    ("Crocodylus niloticus", "Nile Crocodile"),
    ("Python bivittatus", "Burmese Python"),
    ("Chelonia mydas", "Green Sea Turtle"),
    ("Iguana iguana", "Green Iguana"),
    ("Xenopus laevis", "African Clawed Frog"),
    ("Rana temporaria", "European Common Frog"),

    # Insects
    ("Danaus plexippus", "Monarch Butterfly"),
    ("Apis mellifera", "Western Honey Bee"),
    ("Formica rufa", "Red Wood Ant"),

    # Plants
    ("Quercus robur", "English Oak"),
    ("Pinus sylvestris", "Scots Pine"),
    ("Rosa chinensis", "China Rose"),
    ("Tulipa gesneriana", "Garden Tulip"),
    ("Bellis perennis", "Common Daisy"),
    ("Helianthus annuus", "Common Sunflower"),
    ("Orchis mascula", "Early-purple Orchid"),
    ("Phoenix dactylifera", "Date Palm"),
    ("Acer saccharum", "Sugar Maple"),
    ("Pteridium aquilinum", "Bracken Fern"),

    # Margalla Hills / Islamabad
    ("Pinus roxburghii", "Chir Pine"),
    ("Acacia modesta", "Phulai"),
    ("Dalbergia sissoo", "Shisham"),
    ("Melia azedarach", "Chinaberry Tree"),
    ("Bauhinia variegata", "Orchid Tree"),
    ("Pinus wallichiana", "Blue Pine"),
    ("Cedrus deodara", "Himalayan Cedar"),
    ("Ficus religiosa", "Sacred Fig"),
    ("Broussonetia papyrifera", "Paper Mulberry"),
    ("Capra falconeri", "Markhor"),
    ("Panthera pardus saxicolor", "Persian Leopard"),
    ("Ursus thibetanus", "Asiatic Black Bear"),
    ("Vulpes bengalensis", "Bengal Fox"),
    ("Canis aureus", "Golden Jackal"),
    ("Hystrix indica", "Indian Crested Porcupine"),
    ("Macaca mulatta", "Rhesus Macaque"),
    ("Herpestes edwardsii", "Indian Grey Mongoose"),
    ("Francolinus pondicerianus", "Grey Francolin"),
    ("Pavo cristatus", "Indian Peafowl"),
    ("Athene brama", "Spotted Owlet"),
    ("Prinia inornata", "Plain Prinia"),
    ("Upupa epops", "Hoopoe"),
    ("Passer domesticus", "House Sparrow"),
    ("Acridotheres tristis", "Common Myna"),
    ("Psittacula krameri", "Rose-ringed Parakeet"),
    ("Corvus splendens", "House Crow"),
    ("Streptopelia decaocto", "Eurasian Collared-Dove"),
    ("Neophron percnopterus", "Egyptian Vulture"),
    ("Monticola solitarius", "Blue Rock Thrush"),
    ("Naja naja", "Indian Cobra"),
    ("Echis carinatus", "Saw-scaled Viper"),
)

# Generic classifiers emit many near-miss labels for common birds; these all
# collapse onto one reference species.
_BIRD_SYNONYMS: Tuple[Tuple[str, Tuple[str, str]], ...] = (
    # General bird categories
    ("bird", ("Rock Pigeon", "Columba livia")),
    ("rock pigeon", ("Rock Pigeon", "Columba livia")),
    ("pigeon", ("Rock Pigeon", "Columba livia")),
    ("dove", ("Eurasian Collared-Dove", "Streptopelia decaocto")),
    ("columbidae", ("Rock Pigeon", "Columba livia")),
    ("domestic pigeon", ("Rock Pigeon", "Columba livia")),

    # Label variations for pigeons
    ("rock dove", ("Rock Pigeon", "Columba livia")),
    ("feral pigeon", ("Rock Pigeon", "Columba livia")),
    ("street pigeon", ("Rock Pigeon", "Columba livia")),
    ("columba", ("Rock Pigeon", "Columba livia")),
    ("city pigeon", ("Rock Pigeon", "Columba livia")),

    # Other common birds
    ("sparrow", ("House Sparrow", "Passer domesticus")),
    ("myna", ("Common Myna", "Acridotheres tristis")),
    ("parakeet", ("Rose-ringed Parakeet", "Psittacula krameri")),
    ("parrot", ("Rose-ringed Parakeet", "Psittacula krameri")),
    ("goose", ("Greylag Goose", "Anser anser")),
    ("duck", ("Mallard Duck", "Anas platyrhynchos")),
    ("crow", ("House Crow", "Corvus splendens")),
    ("eagle", ("Golden Eagle", "Aquila chrysaetos")),
    ("owl", ("Spotted Owlet", "Athene brama")),
    ("vulture", ("Egyptian Vulture", "Neophron percnopterus")),
)

_DESCRIPTIONS: Tuple[Tuple[str, str], ...] = (
    ("Panthera pardus",
     "The Common Leopard is the apex predator of the Margalla Hills, feeding on wild boar, "
     "barking deer and monkeys, and has adapted to living close to the settlements of Islamabad."),
    ("Ursus thibetanus",
     "The Asiatic Black Bear keeps to the remote parts of the hills. It has a white V-shaped "
     "chest mark, is mostly nocturnal and eats fruit, nuts, insects and carrion."),
    ("Hystrix indica",
     "The Indian Crested Porcupine is a large nocturnal rodent with black and white quills up "
     "to 30cm long that feeds on roots, tubers and bark."),
    ("Macaca mulatta",
     "The Rhesus Macaque lives in social groups and is frequently seen along hiking trails "
     "and viewpoints."),
    ("Vulpes bengalensis",
     "The Bengal Fox is a small, mostly nocturnal fox that lives in pairs, digs burrows and "
     "feeds on rodents, reptiles and insects."),
    ("Columba livia",
     "The Rock Pigeon is one of the most commonly observed birds around Islamabad. It has "
     "bluish-gray plumage with two dark wingbars and an iridescent throat."),
    ("Streptopelia decaocto",
     "The Eurasian Collared-Dove is recognisable by the black collar on the back of its neck "
     "and feeds on seeds, grains and berries."),
    ("Passer domesticus",
     "The House Sparrow is a small, sturdy bird with brown, black and gray plumage; males "
     "carry a black bib."),
    ("Acridotheres tristis",
     "The Common Myna is an omnivorous, highly social bird with a yellow bill and legs, known "
     "for mimicking sounds."),
    ("Psittacula krameri",
     "The Rose-ringed Parakeet is a bright green parrot; males have a red ring around the "
     "neck. It nests in tree cavities."),
    ("Athene brama",
     "The Spotted Owlet is a small owl with spotted brown and white plumage that hunts "
     "insects, small mammals and reptiles at night."),
    ("Upupa epops",
     "The Hoopoe has a distinctive crown of feathers and a long, thin, downcurved bill used "
     "to probe the soil for insects."),
    ("Pinus roxburghii",
     "The Chir Pine is a drought-resistant Himalayan evergreen that can reach 55m, with long "
     "needles in bundles of three."),
    ("Dalbergia sissoo",
     "Shisham is a deciduous rosewood with compound leaves and valuable hardwood, common on "
     "the lower slopes."),
    ("Acacia modesta",
     "Phulai is a thorny, drought-adapted tree with small feathery leaves that helps hold the "
     "hillside soil in place."),
    ("Melia azedarach",
     "The Chinaberry Tree has dark green compound leaves, lilac flowers and yellow berries "
     "that are poisonous to people but eaten by some birds."),
    ("Ficus religiosa",
     "The Sacred Fig or Peepal has heart-shaped leaves with a long pointed tip and can live "
     "for hundreds of years."),
)


class SpeciesReferenceTable:
    """
    Read-only lookup between scientific and common names.

    Lookups never raise on a miss; absence is reported as ``None``.
    """

    def __init__(
        self,
        species: Tuple[Tuple[str, str], ...] = _SPECIES,
        bird_synonyms: Tuple[Tuple[str, Tuple[str, str]], ...] = _BIRD_SYNONYMS,
        descriptions: Tuple[Tuple[str, str], ...] = _DESCRIPTIONS,
    ):
        self._entries: Tuple[ReferenceEntry, ...] = tuple(
            ReferenceEntry(scientific_name=scientific, common_name=common)
            for scientific, common in species
        )
        self._scientific_to_common: Mapping[str, str] = MappingProxyType(dict(species))
        self._common_to_scientific: Mapping[str, str] = MappingProxyType({
            common.lower(): scientific for scientific, common in species
        })
        self._bird_synonyms: Mapping[str, ReferenceEntry] = MappingProxyType({
            label: ReferenceEntry(scientific_name=scientific, common_name=common)
            for label, (common, scientific) in bird_synonyms
        })
        self._descriptions: Mapping[str, str] = MappingProxyType(dict(descriptions))

    @property
    def bird_synonyms(self) -> Mapping[str, ReferenceEntry]:
        """Curated label → species mapping for bird-like classifier labels."""
        return self._bird_synonyms

    def entries(self) -> List[ReferenceEntry]:
        """All table rows in table order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup_common_name(self, scientific_name: str) -> Optional[str]:
        """
        Get the common name for a scientific name.

        Args:
            scientific_name: Binomial, or text carrying one ("species: Felis catus")

        Returns:
            Common name, or None if the species is not in the table
        """
        if not scientific_name:
            return None

        clean = self.clean_species_name(scientific_name)

        if clean in self._scientific_to_common:
            return self._scientific_to_common[clean]

        clean_lower = clean.lower()
        for entry in self._entries:
            scientific_lower = entry.scientific_name.lower()
            if scientific_lower == clean_lower:
                return entry.common_name
        for entry in self._entries:
            scientific_lower = entry.scientific_name.lower()
            if clean_lower in scientific_lower or scientific_lower in clean_lower:
                return entry.common_name

        return None

    def lookup_scientific_name(self, common_name: str) -> Optional[str]:
        """
        Get the scientific name for a common name.

        Tries an exact (case-insensitive) match, then substring containment in
        both directions. A name that is already a binomial is returned as-is.

        Args:
            common_name: Common name or classifier label

        Returns:
            Scientific name, or None if nothing matched
        """
        if not common_name or not common_name.strip():
            return None

        name = common_name.strip()
        name_lower = name.lower()

        if name_lower in self._common_to_scientific:
            return self._common_to_scientific[name_lower]

        if name in self._scientific_to_common:
            return name

        for common_lower, scientific in self._common_to_scientific.items():
            if common_lower in name_lower or name_lower in common_lower:
                return scientific

        if self.is_binomial(name):
            return name

        return None

    def get_description(self, scientific_name: str) -> Optional[str]:
        """Curated description for a species, if one exists."""
        return self._descriptions.get(scientific_name)

    @staticmethod
    def is_binomial(name: str) -> bool:
        """Check whether ``name`` looks like 'Genus species'."""
        return bool(name) and BINOMIAL_PATTERN.match(name) is not None

    @staticmethod
    def extract_binomial(text: str) -> Optional[str]:
        """
        Pull a binomial-looking name out of free text.

        A parenthesized binomial wins over the first capitalised word pair,
        which in prose is often just the start of a sentence.
        """
        if not text:
            return None
        match = PARENTHESIZED_BINOMIAL_PATTERN.search(text) or EMBEDDED_BINOMIAL_PATTERN.search(text)
        return match.group(1) if match else None

    @staticmethod
    def clean_species_name(name: str) -> str:
        """Strip label prefixes like 'species:' and surrounding whitespace."""
        match = LABELLED_BINOMIAL_PATTERN.search(name)
        if match:
            return match.group(1)
        return name.strip()


# Built once at import
_species_reference = SpeciesReferenceTable()
logger.debug(f"Loaded species reference table with {len(_species_reference)} entries")


def get_species_reference() -> SpeciesReferenceTable:
    """Get the process-wide species reference table."""
    return _species_reference
