"""
localseo/locations/data.py

Static German location tables used for regional search expansion.

Location codes are Google Ads location codes as served by DataForSEO.
"""

from __future__ import annotations

from localseo.domain.locations import Location

GERMANY = Location(name="Germany", code=2276)

# One major city per compass region for nationwide searches.
NATIONWIDE_CITIES: tuple[Location, ...] = (
    Location(name="Berlin", code=1003854),
    Location(name="Hamburg", code=1004074),
    Location(name="München", code=1004234),
    Location(name="Köln", code=1004150),
    Location(name="Frankfurt am Main", code=1004049),
)

STATE_NEIGHBORS: dict[str, tuple[str, ...]] = {
    "Schleswig-Holstein": ("Hamburg", "Niedersachsen", "Mecklenburg-Vorpommern"),
    "Hamburg": ("Schleswig-Holstein", "Niedersachsen"),
    "Bremen": ("Niedersachsen",),
    "Niedersachsen": (
        "Schleswig-Holstein",
        "Hamburg",
        "Bremen",
        "Mecklenburg-Vorpommern",
        "Brandenburg",
        "Sachsen-Anhalt",
        "Thüringen",
        "Hessen",
        "Nordrhein-Westfalen",
    ),
    "Mecklenburg-Vorpommern": ("Schleswig-Holstein", "Niedersachsen", "Brandenburg"),
    "Brandenburg": ("Mecklenburg-Vorpommern", "Niedersachsen", "Sachsen-Anhalt", "Sachsen", "Berlin"),
    "Berlin": ("Brandenburg",),
    "Sachsen-Anhalt": ("Niedersachsen", "Brandenburg", "Sachsen", "Thüringen"),
    "Sachsen": ("Brandenburg", "Sachsen-Anhalt", "Thüringen", "Bayern"),
    "Thüringen": ("Niedersachsen", "Sachsen-Anhalt", "Sachsen", "Bayern", "Hessen"),
    "Nordrhein-Westfalen": ("Niedersachsen", "Hessen", "Rheinland-Pfalz"),
    "Hessen": (
        "Niedersachsen",
        "Thüringen",
        "Bayern",
        "Baden-Württemberg",
        "Rheinland-Pfalz",
        "Nordrhein-Westfalen",
    ),
    "Rheinland-Pfalz": ("Nordrhein-Westfalen", "Hessen", "Baden-Württemberg", "Saarland"),
    "Saarland": ("Rheinland-Pfalz",),
    "Baden-Württemberg": ("Hessen", "Bayern", "Rheinland-Pfalz"),
    "Bayern": ("Baden-Württemberg", "Hessen", "Thüringen", "Sachsen"),
}

# Ordered by population, largest first.
MAJOR_CITIES_BY_STATE: dict[str, tuple[str, ...]] = {
    "Schleswig-Holstein": ("Kiel", "Lübeck", "Flensburg", "Neumünster"),
    "Hamburg": ("Hamburg",),
    "Bremen": ("Bremen", "Bremerhaven"),
    "Niedersachsen": ("Hannover", "Braunschweig", "Osnabrück", "Oldenburg", "Göttingen", "Wolfsburg"),
    "Mecklenburg-Vorpommern": ("Rostock", "Schwerin", "Stralsund", "Greifswald"),
    "Brandenburg": ("Potsdam", "Cottbus", "Frankfurt (Oder)"),
    "Berlin": ("Berlin",),
    "Sachsen-Anhalt": ("Magdeburg", "Halle", "Dessau"),
    "Sachsen": ("Dresden", "Leipzig", "Chemnitz", "Zwickau"),
    "Thüringen": ("Erfurt", "Jena", "Gera", "Weimar"),
    "Nordrhein-Westfalen": (
        "Köln",
        "Düsseldorf",
        "Dortmund",
        "Essen",
        "Duisburg",
        "Bochum",
        "Wuppertal",
        "Bielefeld",
        "Bonn",
        "Münster",
    ),
    "Hessen": ("Frankfurt am Main", "Wiesbaden", "Kassel", "Darmstadt", "Offenbach"),
    "Rheinland-Pfalz": ("Mainz", "Ludwigshafen", "Koblenz", "Trier", "Kaiserslautern"),
    "Saarland": ("Saarbrücken",),
    "Baden-Württemberg": ("Stuttgart", "Karlsruhe", "Mannheim", "Freiburg", "Heidelberg", "Ulm", "Heilbronn"),
    "Bayern": ("München", "Nürnberg", "Augsburg", "Regensburg", "Ingolstadt", "Würzburg", "Fürth", "Erlangen"),
}

_ADDITIONAL_CITY_STATES: dict[str, str] = {
    "Neumünster": "Schleswig-Holstein",
    "Salzgitter": "Niedersachsen",
    "Hildesheim": "Niedersachsen",
    "Wilhelmshaven": "Niedersachsen",
    "Celle": "Niedersachsen",
    "Lüneburg": "Niedersachsen",
    "Wismar": "Mecklenburg-Vorpommern",
    "Brandenburg an der Havel": "Brandenburg",
    "Plauen": "Sachsen",
    "Meißen": "Sachsen",
    "Gotha": "Thüringen",
    "Eisenach": "Thüringen",
    "Gelsenkirchen": "Nordrhein-Westfalen",
    "Mönchengladbach": "Nordrhein-Westfalen",
    "Aachen": "Nordrhein-Westfalen",
    "Krefeld": "Nordrhein-Westfalen",
    "Oberhausen": "Nordrhein-Westfalen",
    "Hagen": "Nordrhein-Westfalen",
    "Hamm": "Nordrhein-Westfalen",
    "Mülheim": "Nordrhein-Westfalen",
    "Leverkusen": "Nordrhein-Westfalen",
    "Solingen": "Nordrhein-Westfalen",
    "Paderborn": "Nordrhein-Westfalen",
    "Siegen": "Nordrhein-Westfalen",
    "Recklinghausen": "Nordrhein-Westfalen",
    "Fulda": "Hessen",
    "Marburg": "Hessen",
    "Gießen": "Hessen",
    "Pforzheim": "Baden-Württemberg",
    "Reutlingen": "Baden-Württemberg",
    "Esslingen": "Baden-Württemberg",
    "Ludwigsburg": "Baden-Württemberg",
    "Konstanz": "Baden-Württemberg",
    "Tübingen": "Baden-Württemberg",
    "Villingen-Schwenningen": "Baden-Württemberg",
    "Offenburg": "Baden-Württemberg",
    "Bamberg": "Bayern",
    "Bayreuth": "Bayern",
    "Passau": "Bayern",
    "Rosenheim": "Bayern",
    "Landshut": "Bayern",
    "Aschaffenburg": "Bayern",
    "Kempten": "Bayern",
    "Schweinfurt": "Bayern",
}

CITY_TO_STATE: dict[str, str] = {
    **{city: state for state, cities in MAJOR_CITIES_BY_STATE.items() for city in cities},
    **_ADDITIONAL_CITY_STATES,
}

# Legacy neighbour-city table used to fill regional searches.
NEARBY_CITIES: dict[str, tuple[str, ...]] = {
    "Münster": ("Osnabrück", "Bielefeld", "Dortmund"),
    "Köln": ("Düsseldorf", "Bonn", "Leverkusen"),
    "Düsseldorf": ("Köln", "Duisburg", "Essen"),
    "Dortmund": ("Bochum", "Essen", "Münster"),
    "Essen": ("Dortmund", "Duisburg", "Bochum"),
    "Bielefeld": ("Münster", "Osnabrück", "Paderborn"),
    "Bonn": ("Köln", "Koblenz", "Siegburg"),
    "München": ("Augsburg", "Rosenheim", "Ingolstadt"),
    "Nürnberg": ("Fürth", "Erlangen", "Regensburg"),
    "Augsburg": ("München", "Ulm", "Ingolstadt"),
    "Regensburg": ("Nürnberg", "Ingolstadt", "Passau"),
    "Stuttgart": ("Heilbronn", "Karlsruhe", "Ulm"),
    "Karlsruhe": ("Stuttgart", "Mannheim", "Heidelberg"),
    "Mannheim": ("Heidelberg", "Karlsruhe", "Darmstadt"),
    "Freiburg": ("Basel", "Offenburg", "Villingen-Schwenningen"),
    "Hannover": ("Braunschweig", "Hildesheim", "Celle"),
    "Braunschweig": ("Hannover", "Wolfsburg", "Salzgitter"),
    "Osnabrück": ("Münster", "Bielefeld", "Oldenburg"),
    "Oldenburg": ("Bremen", "Osnabrück", "Wilhelmshaven"),
    "Frankfurt am Main": ("Wiesbaden", "Darmstadt", "Mainz"),
    "Wiesbaden": ("Frankfurt am Main", "Mainz", "Darmstadt"),
    "Darmstadt": ("Frankfurt am Main", "Mannheim", "Wiesbaden"),
    "Kassel": ("Göttingen", "Fulda", "Marburg"),
    "Dresden": ("Leipzig", "Chemnitz", "Meißen"),
    "Leipzig": ("Dresden", "Halle", "Chemnitz"),
    "Chemnitz": ("Dresden", "Leipzig", "Zwickau"),
    "Berlin": ("Potsdam", "Frankfurt (Oder)", "Cottbus"),
    "Potsdam": ("Berlin", "Brandenburg an der Havel", "Magdeburg"),
    "Hamburg": ("Lübeck", "Kiel", "Bremen"),
    "Kiel": ("Hamburg", "Lübeck", "Flensburg"),
    "Lübeck": ("Hamburg", "Kiel", "Schwerin"),
    "Bremen": ("Hamburg", "Oldenburg", "Hannover"),
    "Mainz": ("Wiesbaden", "Frankfurt am Main", "Darmstadt"),
    "Koblenz": ("Bonn", "Mainz", "Trier"),
    "Saarbrücken": ("Kaiserslautern", "Trier", "Metz"),
    "Erfurt": ("Weimar", "Jena", "Gotha"),
    "Jena": ("Erfurt", "Weimar", "Gera"),
    "Magdeburg": ("Halle", "Braunschweig", "Potsdam"),
    "Halle": ("Leipzig", "Magdeburg", "Erfurt"),
    "Rostock": ("Schwerin", "Stralsund", "Wismar"),
    "Schwerin": ("Rostock", "Lübeck", "Hamburg"),
}

STATE_ABBREVIATIONS: dict[str, str] = {
    "BW": "Baden-Württemberg",
    "BY": "Bayern",
    "BE": "Berlin",
    "BB": "Brandenburg",
    "HB": "Bremen",
    "HH": "Hamburg",
    "HE": "Hessen",
    "MV": "Mecklenburg-Vorpommern",
    "NI": "Niedersachsen",
    "NW": "Nordrhein-Westfalen",
    "NRW": "Nordrhein-Westfalen",
    "RP": "Rheinland-Pfalz",
    "SL": "Saarland",
    "SN": "Sachsen",
    "ST": "Sachsen-Anhalt",
    "SH": "Schleswig-Holstein",
    "TH": "Thüringen",
}

ENGLISH_STATE_NAMES: dict[str, str] = {
    "bavaria": "Bayern",
    "north rhine-westphalia": "Nordrhein-Westfalen",
    "lower saxony": "Niedersachsen",
    "rhineland-palatinate": "Rheinland-Pfalz",
    "saxony": "Sachsen",
    "saxony-anhalt": "Sachsen-Anhalt",
    "hesse": "Hessen",
    "thuringia": "Thüringen",
    "mecklenburg-western pomerania": "Mecklenburg-Vorpommern",
}


def state_for_city(city: str) -> str | None:
    """
    Look a city up exactly, then case-insensitively, then by substring.
    """

    if city in CITY_TO_STATE:
        return CITY_TO_STATE[city]

    city_lower = city.strip().lower()
    if not city_lower:
        return None
    for mapped_city, state in CITY_TO_STATE.items():
        if mapped_city.lower() == city_lower:
            return state
    for mapped_city, state in CITY_TO_STATE.items():
        mapped_lower = mapped_city.lower()
        if mapped_lower in city_lower or city_lower in mapped_lower:
            return state
    return None


def extract_state_from_location(full_location: str) -> str | None:
    """
    Find a German state in a comma separated location string.

    Accepts two-letter abbreviations, German names and common English names.
    """

    for part in (segment.strip() for segment in full_location.split(",")):
        if not part:
            continue
        abbreviation = STATE_ABBREVIATIONS.get(part.upper())
        if abbreviation:
            return abbreviation
        lowered = part.lower()
        for state in STATE_NEIGHBORS:
            if state.lower() == lowered:
                return state
        if lowered in ENGLISH_STATE_NAMES:
            return ENGLISH_STATE_NAMES[lowered]
    return None


def cities_in_region(city: str, max_cities: int = 5, *, state: str | None = None) -> list[str]:
    """
    Return the city, up to three cities of its state in total, then the
    largest city of each neighbour state, capped at `max_cities`.

    Without a known state the legacy neighbour-city table is used.
    """

    if max_cities < 1:
        return []

    resolved_state = state_for_city(city) or state
    if not resolved_state:
        return [city, *NEARBY_CITIES.get(city, ())][:max_cities]

    result = [city]
    same_state_limit = min(3, max_cities)
    for candidate in MAJOR_CITIES_BY_STATE.get(resolved_state, ()):
        if len(result) >= same_state_limit:
            break
        if candidate != city:
            result.append(candidate)

    for neighbor_state in STATE_NEIGHBORS.get(resolved_state, ()):
        if len(result) >= max_cities:
            break
        neighbor_cities = MAJOR_CITIES_BY_STATE.get(neighbor_state, ())
        if neighbor_cities and neighbor_cities[0] not in result:
            result.append(neighbor_cities[0])

    return result[:max_cities]
