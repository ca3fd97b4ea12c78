"""
Lexicon: static knowledge of known cities and countries that need a city.

The state machine and analyzers only talk to the `Lexicon` interface, so the
static tables can later be replaced by a geocoding backend.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CountryInfo:
    """A country that needs city disambiguation."""
    name: str
    suggestions: tuple[str, ...]
    regions: tuple[str, ...] = field(default_factory=tuple)


class Lexicon(ABC):
    """Read-only lookup service over places."""

    @abstractmethod
    def lookup_city(self, phrase: str) -> Optional[str]:
        """Canonical display name of a known city (case-insensitive), or None."""

    @abstractmethod
    def lookup_country(self, phrase: str) -> Optional[CountryInfo]:
        """Disambiguation entry of a country, or None."""

    @abstractmethod
    def country_of(self, city: str) -> Optional[str]:
        """Country a city belongs to, when known."""


# ==================== TABLES ====================

# Aliases and abbreviations map onto the same display name
KNOWN_CITIES: dict[str, str] = {
    # US
    "nyc": "New York", "new york": "New York", "new york city": "New York",
    "la": "Los Angeles", "los angeles": "Los Angeles",
    "sf": "San Francisco", "san fran": "San Francisco", "san francisco": "San Francisco",
    "vegas": "Las Vegas", "las vegas": "Las Vegas",
    "miami": "Miami", "chicago": "Chicago", "boston": "Boston", "seattle": "Seattle",
    "denver": "Denver", "philadelphia": "Philadelphia", "phoenix": "Phoenix",
    "houston": "Houston", "dallas": "Dallas", "san antonio": "San Antonio",
    "san diego": "San Diego", "detroit": "Detroit", "memphis": "Memphis",
    "baltimore": "Baltimore", "milwaukee": "Milwaukee", "albuquerque": "Albuquerque",
    "kansas city": "Kansas City", "atlanta": "Atlanta", "nashville": "Nashville",
    "minneapolis": "Minneapolis", "cleveland": "Cleveland", "new orleans": "New Orleans",
    "colorado springs": "Colorado Springs", "virginia beach": "Virginia Beach",
    # UK / Ireland
    "london": "London", "edinburgh": "Edinburgh", "glasgow": "Glasgow",
    "manchester": "Manchester", "liverpool": "Liverpool", "birmingham": "Birmingham",
    "bristol": "Bristol", "leeds": "Leeds", "sheffield": "Sheffield",
    "newcastle": "Newcastle", "bath": "Bath", "york": "York", "cambridge": "Cambridge",
    "dublin": "Dublin", "cork": "Cork", "galway": "Galway",
    # Europe
    "paris": "Paris", "nice": "Nice", "lyon": "Lyon", "marseille": "Marseille",
    "bordeaux": "Bordeaux", "toulouse": "Toulouse",
    "rome": "Rome", "florence": "Florence", "venice": "Venice", "milan": "Milan",
    "naples": "Naples", "turin": "Turin",
    "madrid": "Madrid", "barcelona": "Barcelona", "seville": "Seville",
    "valencia": "Valencia", "bilbao": "Bilbao",
    "lisbon": "Lisbon", "porto": "Porto", "faro": "Faro",
    "berlin": "Berlin", "munich": "Munich", "hamburg": "Hamburg",
    "frankfurt": "Frankfurt", "cologne": "Cologne", "dresden": "Dresden",
    "amsterdam": "Amsterdam", "rotterdam": "Rotterdam",
    "brussels": "Brussels", "bruges": "Bruges", "antwerp": "Antwerp",
    "zurich": "Zurich", "geneva": "Geneva", "bern": "Bern", "lucerne": "Lucerne",
    "vienna": "Vienna", "salzburg": "Salzburg", "innsbruck": "Innsbruck", "graz": "Graz",
    "prague": "Prague", "budapest": "Budapest",
    "warsaw": "Warsaw", "krakow": "Krakow", "gdansk": "Gdansk",
    "copenhagen": "Copenhagen", "stockholm": "Stockholm", "oslo": "Oslo",
    "bergen": "Bergen", "helsinki": "Helsinki", "reykjavik": "Reykjavik",
    "athens": "Athens", "thessaloniki": "Thessaloniki", "santorini": "Santorini",
    "mykonos": "Mykonos", "crete": "Crete",
    # Australia / Canada
    "sydney": "Sydney", "melbourne": "Melbourne", "brisbane": "Brisbane",
    "perth": "Perth", "adelaide": "Adelaide", "gold coast": "Gold Coast",
    "canberra": "Canberra", "hobart": "Hobart", "darwin": "Darwin",
    "vancouver": "Vancouver", "toronto": "Toronto", "montreal": "Montreal",
    "calgary": "Calgary", "ottawa": "Ottawa", "edmonton": "Edmonton",
    "quebec city": "Quebec City", "winnipeg": "Winnipeg", "halifax": "Halifax",
    # Asia
    "tokyo": "Tokyo", "kyoto": "Kyoto", "osaka": "Osaka", "hiroshima": "Hiroshima",
    "nara": "Nara", "yokohama": "Yokohama", "kobe": "Kobe",
    "beijing": "Beijing", "shanghai": "Shanghai", "hong kong": "Hong Kong",
    "guangzhou": "Guangzhou", "shenzhen": "Shenzhen", "chengdu": "Chengdu",
    "seoul": "Seoul", "busan": "Busan", "jeju": "Jeju",
    "taipei": "Taipei", "kaohsiung": "Kaohsiung",
    "bangkok": "Bangkok", "chiang mai": "Chiang Mai", "phuket": "Phuket",
    "pattaya": "Pattaya", "krabi": "Krabi",
    "ho chi minh city": "Ho Chi Minh City", "hanoi": "Hanoi", "da nang": "Da Nang",
    "hoi an": "Hoi An",
    "kuala lumpur": "Kuala Lumpur", "penang": "Penang", "langkawi": "Langkawi",
    "singapore": "Singapore", "jakarta": "Jakarta", "bali": "Bali",
    "yogyakarta": "Yogyakarta",
    "mumbai": "Mumbai", "delhi": "Delhi", "bangalore": "Bangalore",
    "chennai": "Chennai", "kolkata": "Kolkata", "goa": "Goa", "jaipur": "Jaipur",
    "agra": "Agra", "varanasi": "Varanasi",
    "kathmandu": "Kathmandu", "pokhara": "Pokhara",
    "colombo": "Colombo", "kandy": "Kandy", "galle": "Galle",
    # Middle East / Africa
    "istanbul": "Istanbul", "ankara": "Ankara", "antalya": "Antalya",
    "cappadocia": "Cappadocia", "izmir": "Izmir",
    "dubai": "Dubai", "abu dhabi": "Abu Dhabi", "doha": "Doha",
    "riyadh": "Riyadh", "jeddah": "Jeddah",
    "cairo": "Cairo", "alexandria": "Alexandria", "luxor": "Luxor", "aswan": "Aswan",
    "tehran": "Tehran", "isfahan": "Isfahan", "shiraz": "Shiraz",
    "tel aviv": "Tel Aviv", "jerusalem": "Jerusalem", "beirut": "Beirut", "amman": "Amman",
    "cape town": "Cape Town", "johannesburg": "Johannesburg", "durban": "Durban",
    "marrakech": "Marrakech", "casablanca": "Casablanca", "fez": "Fez", "rabat": "Rabat",
    "nairobi": "Nairobi", "mombasa": "Mombasa",
    "dar es salaam": "Dar es Salaam", "zanzibar": "Zanzibar",
    "addis ababa": "Addis Ababa", "lagos": "Lagos", "abuja": "Abuja",
    "accra": "Accra", "kumasi": "Kumasi",
    # Latin America
    "rio de janeiro": "Rio de Janeiro", "rio": "Rio de Janeiro",
    "sao paulo": "São Paulo", "salvador": "Salvador", "brasilia": "Brasília",
    "buenos aires": "Buenos Aires", "mendoza": "Mendoza", "bariloche": "Bariloche",
    "lima": "Lima", "cusco": "Cusco", "arequipa": "Arequipa",
    "bogota": "Bogotá", "medellin": "Medellín", "cartagena": "Cartagena",
    "santiago": "Santiago", "valparaiso": "Valparaíso",
    "mexico city": "Mexico City", "cancun": "Cancun", "puerto vallarta": "Puerto Vallarta",
    "playa del carmen": "Playa del Carmen", "tulum": "Tulum",
}

_US = (
    ("New York", "Los Angeles", "Chicago", "Miami", "San Francisco", "Las Vegas"),
    ("East Coast", "West Coast", "South", "Midwest"),
)
_UK = (
    ("London", "Edinburgh", "Manchester", "Liverpool", "Bath"),
    ("England", "Scotland", "Wales", "Northern Ireland"),
)

COUNTRIES: dict[str, CountryInfo] = {
    info.name.lower(): info
    for info in (
        CountryInfo("United States", *_US),
        CountryInfo("Canada", ("Toronto", "Vancouver", "Montreal", "Calgary", "Ottawa"),
                    ("Eastern Canada", "Western Canada")),
        CountryInfo("Australia", ("Sydney", "Melbourne", "Brisbane", "Perth", "Adelaide", "Gold Coast")),
        CountryInfo("China", ("Beijing", "Shanghai", "Hong Kong", "Guangzhou", "Shenzhen", "Chengdu")),
        CountryInfo("India", ("Mumbai", "Delhi", "Bangalore", "Chennai", "Kolkata", "Goa")),
        CountryInfo("Brazil", ("Rio de Janeiro", "São Paulo", "Salvador", "Brasília", "Fortaleza")),
        CountryInfo("Russia", ("Moscow", "St Petersburg", "Sochi", "Kazan", "Vladivostok")),
        CountryInfo("Indonesia", ("Jakarta", "Bali", "Yogyakarta", "Bandung", "Surabaya")),
        CountryInfo("Turkey", ("Istanbul", "Ankara", "Antalya", "Cappadocia", "Izmir")),
        CountryInfo("Argentina", ("Buenos Aires", "Mendoza", "Bariloche", "Salta", "Ushuaia")),
        CountryInfo("South Africa", ("Cape Town", "Johannesburg", "Durban", "Stellenbosch", "Port Elizabeth")),
        CountryInfo("Egypt", ("Cairo", "Alexandria", "Luxor", "Aswan", "Hurghada")),
        CountryInfo("Thailand", ("Bangkok", "Chiang Mai", "Phuket", "Pattaya", "Krabi")),
        CountryInfo("Vietnam", ("Ho Chi Minh City", "Hanoi", "Da Nang", "Hoi An", "Nha Trang")),
        CountryInfo("Philippines", ("Manila", "Cebu", "Davao", "Boracay", "Palawan")),
        CountryInfo("Malaysia", ("Kuala Lumpur", "Penang", "Langkawi", "Johor Bahru", "Kota Kinabalu")),
        CountryInfo("Peru", ("Lima", "Cusco", "Arequipa", "Trujillo", "Iquitos")),
        CountryInfo("Chile", ("Santiago", "Valparaíso", "Antofagasta", "Concepción", "Atacama Desert")),
        CountryInfo("Colombia", ("Bogotá", "Medellín", "Cartagena", "Cali", "Santa Marta")),
        CountryInfo("Morocco", ("Marrakech", "Casablanca", "Fez", "Rabat", "Essaouira")),
        CountryInfo("Germany", ("Berlin", "Munich", "Hamburg", "Frankfurt", "Cologne")),
        CountryInfo("France", ("Paris", "Nice", "Lyon", "Marseille", "Bordeaux")),
        CountryInfo("Italy", ("Rome", "Milan", "Venice", "Florence", "Naples")),
        CountryInfo("Spain", ("Madrid", "Barcelona", "Seville", "Valencia", "Bilbao")),
        CountryInfo("United Kingdom", *_UK),
        CountryInfo("England", ("London", "Manchester", "Liverpool", "Bath", "York", "Cambridge"),
                    ("London & South East", "North England", "South West", "Midlands")),
        CountryInfo("Scotland", ("Edinburgh", "Glasgow", "Aberdeen", "Dundee", "Stirling")),
        CountryInfo("Ireland", ("Dublin", "Cork", "Galway", "Limerick", "Waterford")),
        CountryInfo("Poland", ("Warsaw", "Krakow", "Gdansk", "Wroclaw", "Poznan")),
        CountryInfo("Netherlands", ("Amsterdam", "Rotterdam", "The Hague", "Utrecht", "Eindhoven")),
        CountryInfo("Belgium", ("Brussels", "Bruges", "Antwerp", "Ghent", "Leuven")),
        CountryInfo("Switzerland", ("Zurich", "Geneva", "Bern", "Basel", "Lucerne")),
        CountryInfo("Austria", ("Vienna", "Salzburg", "Innsbruck", "Graz", "Linz")),
        CountryInfo("Greece", ("Athens", "Thessaloniki", "Santorini", "Mykonos", "Crete")),
        CountryInfo("Portugal", ("Lisbon", "Porto", "Faro", "Braga", "Coimbra")),
        CountryInfo("Czech Republic", ("Prague", "Brno", "Cesky Krumlov", "Ostrava", "Plzen")),
        CountryInfo("Hungary", ("Budapest", "Debrecen", "Szeged", "Miskolc", "Pecs")),
        CountryInfo("Norway", ("Oslo", "Bergen", "Trondheim", "Stavanger", "Tromsø")),
        CountryInfo("Sweden", ("Stockholm", "Gothenburg", "Malmö", "Uppsala", "Västerås")),
        CountryInfo("Denmark", ("Copenhagen", "Aarhus", "Odense", "Aalborg", "Esbjerg")),
        CountryInfo("Finland", ("Helsinki", "Tampere", "Turku", "Oulu", "Lahti")),
        CountryInfo("Japan", ("Tokyo", "Kyoto", "Osaka", "Hiroshima", "Nara")),
        CountryInfo("South Korea", ("Seoul", "Busan", "Incheon", "Daegu", "Jeju")),
        CountryInfo("Taiwan", ("Taipei", "Kaohsiung", "Taichung", "Tainan", "Hualien")),
        CountryInfo("Cambodia", ("Phnom Penh", "Siem Reap", "Sihanoukville", "Battambang", "Kampot")),
        CountryInfo("Sri Lanka", ("Colombo", "Kandy", "Galle", "Anuradhapura", "Ella")),
        CountryInfo("Nepal", ("Kathmandu", "Pokhara", "Chitwan", "Lumbini", "Bhaktapur")),
        CountryInfo("Mexico", ("Mexico City", "Cancun", "Puerto Vallarta", "Guadalajara", "Playa del Carmen")),
        CountryInfo("Guatemala", ("Guatemala City", "Antigua", "Tikal", "Lake Atitlan", "Quetzaltenango")),
        CountryInfo("Kenya", ("Nairobi", "Mombasa", "Kisumu", "Nakuru", "Eldoret")),
        CountryInfo("Tanzania", ("Dar es Salaam", "Arusha", "Zanzibar", "Mwanza", "Dodoma")),
        CountryInfo("Ethiopia", ("Addis Ababa", "Bahir Dar", "Gondar", "Axum", "Harar")),
        CountryInfo("Ghana", ("Accra", "Kumasi", "Tamale", "Cape Coast", "Takoradi")),
        CountryInfo("Nigeria", ("Lagos", "Abuja", "Kano", "Ibadan", "Port Harcourt")),
    )
}

COUNTRY_ALIASES: dict[str, str] = {
    "usa": "united states",
    "us": "united states",
    "america": "united states",
    "the united states": "united states",
    "uk": "united kingdom",
    "britain": "united kingdom",
    "great britain": "united kingdom",
    "the uk": "united kingdom",
    "holland": "netherlands",
    "the netherlands": "netherlands",
    "korea": "south korea",
}

# Cities that are in no disambiguation list but are worth placing on a route
EXTRA_CITY_COUNTRIES: dict[str, str] = {
    "Singapore": "Singapore",
    "Dubai": "United Arab Emirates",
    "Abu Dhabi": "United Arab Emirates",
    "Doha": "Qatar",
    "Reykjavik": "Iceland",
    "Tel Aviv": "Israel",
    "Jerusalem": "Israel",
    "Beirut": "Lebanon",
    "Amman": "Jordan",
    "Tehran": "Iran",
    "Isfahan": "Iran",
    "Shiraz": "Iran",
    "Riyadh": "Saudi Arabia",
    "Jeddah": "Saudi Arabia",
    "Tulum": "Mexico",
}

# Cities of these entries are placed in the United Kingdom
_SUBDIVISIONS = {"England", "Scotland"}


# ==================== STATIC LEXICON ====================

class StaticLexicon(Lexicon):
    """Lexicon backed by the in-module tables."""

    def __init__(
        self,
        cities: Optional[dict[str, str]] = None,
        countries: Optional[dict[str, CountryInfo]] = None,
        aliases: Optional[dict[str, str]] = None,
    ):
        self._cities = dict(KNOWN_CITIES if cities is None else cities)
        self._countries = dict(COUNTRIES if countries is None else countries)
        self._aliases = dict(COUNTRY_ALIASES if aliases is None else aliases)

        self._city_country: dict[str, str] = dict(EXTRA_CITY_COUNTRIES)
        for info in self._countries.values():
            country = "United Kingdom" if info.name in _SUBDIVISIONS else info.name
            for city in info.suggestions:
                self._city_country.setdefault(city, country)

    @staticmethod
    def _key(phrase: str) -> str:
        return " ".join(phrase.lower().split()).strip(" .!?,")

    def lookup_city(self, phrase: str) -> Optional[str]:
        return self._cities.get(self._key(phrase))

    def lookup_country(self, phrase: str) -> Optional[CountryInfo]:
        key = self._key(phrase)
        key = self._aliases.get(key, key)
        return self._countries.get(key)

    def country_of(self, city: str) -> Optional[str]:
        canonical = self.lookup_city(city) or city
        return self._city_country.get(canonical)


default_lexicon = StaticLexicon()
