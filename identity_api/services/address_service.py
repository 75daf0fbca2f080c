"""
Address validation: state and city against the full state list, postal code
against a partial reference table.

The code must always be 6 digits. When the state has reference data the code
must also fall inside one of its numeric ranges, and when the city has known
prefixes it must start with one of them. States and cities without reference
data accept any 6-digit code.
"""
from dataclasses import dataclass
from typing import Optional

from identity_api.services.states import STATES_AND_CITIES

# (min, max) inclusive ranges per state, and city → prefixes
POSTAL_DATA: dict[str, dict] = {
    "Maharashtra": {
        "ranges": [(400000, 449999)],
        "cities": {
            "Mumbai": ["400"],
            "Pune": ["411", "412"],
            "Nagpur": ["440", "441"],
            "Nashik": ["422"],
            "Thane": ["4006", "401"],
            "Aurangabad": ["431"],
        },
    },
    "Delhi": {
        "ranges": [(110000, 110999)],
        "cities": {
            "New Delhi": ["110"],
            "South Delhi": ["110"],
            "North Delhi": ["110"],
        },
    },
    "Karnataka": {
        "ranges": [(560000, 599999)],
        "cities": {
            "Bengaluru": ["560", "561", "562"],
            "Mysuru": ["570", "571"],
            "Hubballi-Dharwad": ["580"],
            "Mangaluru": ["575"],
        },
    },
    "Tamil Nadu": {
        "ranges": [(600000, 649999)],
        "cities": {
            "Chennai": ["600"],
            "Coimbatore": ["641"],
            "Madurai": ["625"],
            "Tiruchirappalli": ["620"],
            "Salem": ["636"],
        },
    },
    "Uttar Pradesh": {
        "ranges": [(201000, 289999)],
        "cities": {
            "Lucknow": ["226"],
            "Kanpur": ["208"],
            "Ghaziabad": ["201"],
            "Agra": ["282"],
            "Varanasi": ["221"],
            "Noida": ["201"],
            "Prayagraj": ["211"],
        },
    },
    "Gujarat": {
        "ranges": [(360000, 399999)],
        "cities": {
            "Ahmedabad": ["380", "382"],
            "Surat": ["395", "394"],
            "Vadodara": ["390", "391"],
            "Rajkot": ["360"],
        },
    },
    "West Bengal": {
        "ranges": [(700000, 749999)],
        "cities": {
            "Kolkata": ["700"],
            "Howrah": ["711"],
            "Siliguri": ["734"],
        },
    },
    "Telangana": {
        "ranges": [(500000, 509999)],
        "cities": {
            "Hyderabad": ["500", "501"],
            "Warangal": ["506"],
        },
    },
    "Andhra Pradesh": {
        "ranges": [(510000, 539999)],
        "cities": {
            "Visakhapatnam": ["530", "531"],
            "Vijayawada": ["520", "521"],
            "Guntur": ["522"],
            "Tirupati": ["517"],
        },
    },
    "Rajasthan": {
        "ranges": [(300000, 349999)],
        "cities": {
            "Jaipur": ["302"],
            "Jodhpur": ["342"],
            "Kota": ["324"],
            "Udaipur": ["313"],
        },
    },
    "Kerala": {
        "ranges": [(670000, 699999)],
        "cities": {
            "Thiruvananthapuram": ["695"],
            "Kochi": ["682"],
            "Kozhikode": ["673"],
        },
    },
    "Punjab": {
        "ranges": [(140000, 160999)],
        "cities": {
            "Ludhiana": ["141"],
            "Amritsar": ["143"],
            "Chandigarh": ["160"],
            "Jalandhar": ["144"],
        },
    },
    "Haryana": {
        "ranges": [(120000, 139999)],
        "cities": {
            "Gurugram": ["122"],
            "Faridabad": ["121"],
            "Panipat": ["132"],
        },
    },
    "Madhya Pradesh": {
        "ranges": [(450000, 489999)],
        "cities": {
            "Indore": ["452"],
            "Bhopal": ["462"],
            "Gwalior": ["474"],
            "Jabalpur": ["482"],
        },
    },
    "Bihar": {
        "ranges": [(800000, 859999)],
        "cities": {
            "Patna": ["800", "801"],
            "Gaya": ["823"],
            "Muzaffarpur": ["842"],
        },
    },
}


@dataclass(frozen=True)
class AddressValidation:
    is_valid: bool
    message: Optional[str] = None


class AddressValidator:
    def __init__(self, data: dict = None, states: dict = None):
        self.data = POSTAL_DATA if data is None else data
        self.states = STATES_AND_CITIES if states is None else states

    def validate(self, state: str, city: str, postal_code: str) -> AddressValidation:
        cities = self.states.get(state)
        if cities is None:
            return AddressValidation(False, "Invalid State selected")
        if city not in cities:
            return AddressValidation(False, "Invalid City for the selected State")

        if not postal_code or len(postal_code) != 6 or not (postal_code.isascii() and postal_code.isdigit()):
            return AddressValidation(False, "Postal code must be a 6-digit number.")

        state_data = self.data.get(state)
        if state_data is None:
            # No reference data for this state: any 6-digit code is accepted
            return AddressValidation(True)

        value = int(postal_code)
        if not any(low <= value <= high for low, high in state_data["ranges"]):
            starts = " or ".join(str(low)[:2] for low, _ in state_data["ranges"])
            return AddressValidation(
                False,
                f"Postal code {postal_code} does not seem to belong to {state} (usually starts with {starts}).",
            )

        prefixes = state_data["cities"].get(city)
        if prefixes and not any(postal_code.startswith(p) for p in prefixes):
            return AddressValidation(
                False,
                f"Postal code {postal_code} does not match the usual codes for {city} "
                f"(starts with {', '.join(prefixes)}).",
            )

        return AddressValidation(True)


def get_address_validator() -> AddressValidator:
    return AddressValidator()
