"""
OSM tag -> directory category / sub-category.

Keys are "<osm key>:<osm value>". A venue takes the first of its tags (in tag
order) that appears here.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple


TAG_CATEGORY_MAP: Dict[str, Tuple[str, str]] = {
    # food and drink
    "amenity:cafe": ("food-and-drink", "cafe"),
    "shop:coffee": ("food-and-drink", "coffee_shop"),
    "amenity:restaurant": ("food-and-drink", "restaurant"),
    "amenity:fast_food": ("food-and-drink", "fast_food_restaurant"),
    "amenity:bar": ("food-and-drink", "bar"),
    "amenity:pub": ("food-and-drink", "pub"),
    "amenity:ice_cream": ("food-and-drink", "ice_cream_shop"),
    "amenity:food_court": ("food-and-drink", "food_court"),
    "shop:bakery": ("food-and-drink", "bakery"),
    "shop:pastry": ("food-and-drink", "dessert_shop"),
    "shop:confectionery": ("food-and-drink", "confectionery"),
    "shop:deli": ("food-and-drink", "deli"),
    "shop:tea": ("food-and-drink", "tea_house"),
    "cuisine:pizza": ("food-and-drink", "pizza_restaurant"),
    "cuisine:sushi": ("food-and-drink", "sushi_restaurant"),
    # lodging
    "tourism:hotel": ("lodging", "hotel"),
    "tourism:hostel": ("lodging", "hostel"),
    "tourism:guest_house": ("lodging", "guest_house"),
    "tourism:motel": ("lodging", "motel"),
    "tourism:camp_site": ("lodging", "campground"),
    "tourism:apartment": ("lodging", "private_guest_room"),
    "tourism:chalet": ("lodging", "chalet"),
    # finance
    "amenity:atm": ("finance", "atm"),
    "amenity:bank": ("finance", "bank"),
    "amenity:bureau_de_change": ("finance", "currency_exchange"),
    "office:accountant": ("finance", "accounting"),
    # shopping
    "shop:supermarket": ("shopping", "supermarket"),
    "shop:convenience": ("shopping", "convenience_store"),
    "shop:clothes": ("shopping", "clothing_store"),
    "shop:shoes": ("shopping", "shoe_store"),
    "shop:electronics": ("shopping", "electronics_store"),
    "shop:mobile_phone": ("shopping", "cell_phone_store"),
    "shop:computer": ("shopping", "electronics_store"),
    "shop:books": ("shopping", "book_store"),
    "shop:jewelry": ("shopping", "jewelry_store"),
    "shop:bicycle": ("shopping", "bicycle_store"),
    "shop:car_parts": ("shopping", "auto_parts_store"),
    "shop:butcher": ("shopping", "butcher_shop"),
    "shop:florist": ("services", "florist"),
    "shop:hardware": ("shopping", "hardware_store"),
    "shop:furniture": ("shopping", "furniture_store"),
    "shop:gift": ("shopping", "gift_shop"),
    "shop:wine": ("shopping", "liquor_store"),
    "shop:alcohol": ("shopping", "liquor_store"),
    # health
    "amenity:pharmacy": ("health-and-wellness", "pharmacy"),
    "amenity:dentist": ("health-and-wellness", "dentist"),
    "amenity:doctors": ("health-and-wellness", "doctor"),
    "amenity:clinic": ("health-and-wellness", "clinic"),
    "healthcare:physiotherapist": ("health-and-wellness", "physiotherapist"),
    "leisure:fitness_centre": ("sports", "gym"),
    "shop:massage": ("health-and-wellness", "massage"),
    # services
    "shop:hairdresser": ("services", "hair_salon"),
    "shop:beauty": ("services", "beauty_salon"),
    "shop:laundry": ("services", "laundry"),
    "shop:travel_agency": ("services", "travel_agency"),
    "office:lawyer": ("services", "lawyer"),
    "office:estate_agent": ("services", "real_estate_agency"),
    "office:coworking": ("business", "coworking_space"),
    "amenity:coworking_space": ("business", "coworking_space"),
    "craft:photographer": ("services", "photographer"),
    "craft:electrician": ("services", "electrician"),
    "craft:plumber": ("services", "plumber"),
    "amenity:veterinary": ("services", "veterinary_care"),
    # automotive
    "shop:car_repair": ("automotive", "car_repair"),
    "shop:car": ("automotive", "car_dealer"),
    "amenity:car_rental": ("automotive", "car_rental"),
    "amenity:fuel": ("automotive", "gas_station"),
    "amenity:charging_station": ("automotive", "electric_vehicle_charging_station"),
    # culture and leisure
    "tourism:museum": ("culture", "museum"),
    "tourism:gallery": ("culture", "art_gallery"),
    "tourism:attraction": ("entertainment-and-recreation", "tourist_attraction"),
    "amenity:nightclub": ("entertainment-and-recreation", "night_club"),
    "amenity:cinema": ("entertainment-and-recreation", "movie_theater"),
    "amenity:theatre": ("culture", "performing_arts_theater"),
    "leisure:park": ("entertainment-and-recreation", "park"),
    "amenity:marketplace": ("shopping", "market"),
}

KNOWN_SUBCATEGORIES = frozenset(sub for _, sub in TAG_CATEGORY_MAP.values())


def match_category(tags: Mapping[str, str]) -> Optional[Tuple[str, str]]:
    """(category, subcategory) for the first mapped tag, else None."""
    for key, value in tags.items():
        hit = TAG_CATEGORY_MAP.get(f"{key}:{value}")
        if hit:
            return hit
    return None
