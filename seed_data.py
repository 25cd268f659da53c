"""
Reference markets, malls and areas inserted into an empty location collection.

Coordinates are [longitude, latitude].
"""

LOCATIONS = [
    # Lagos
    {"name": "Balogun Market", "type": "market", "state": "Lagos", "lga": "Lagos Island", "area": "Lagos Island", "address": "Balogun Street, Lagos Island", "coordinates": [3.3878, 6.4541]},
    {"name": "Computer Village", "type": "market", "state": "Lagos", "lga": "Ikeja", "area": "Otigba", "address": "Otigba Street, Ikeja", "coordinates": [3.3489, 6.5936]},
    {"name": "Alaba International Market", "type": "market", "state": "Lagos", "lga": "Ojo", "area": "Alaba", "address": "Alaba International, Ojo", "coordinates": [3.1870, 6.4617]},
    {"name": "Trade Fair Complex", "type": "market", "state": "Lagos", "lga": "Ojo", "area": "Badagry Expressway", "address": "Lagos-Badagry Expressway", "coordinates": [3.2446, 6.4669]},
    {"name": "Oshodi Market", "type": "market", "state": "Lagos", "lga": "Oshodi-Isolo", "area": "Oshodi", "address": "Oshodi Interchange", "coordinates": [3.3464, 6.5550]},
    {"name": "Mile 12 Market", "type": "market", "state": "Lagos", "lga": "Kosofe", "area": "Mile 12", "address": "Ikorodu Road, Mile 12", "coordinates": [3.3958, 6.6044]},
    {"name": "Lekki Market", "type": "market", "state": "Lagos", "lga": "Eti-Osa", "area": "Lekki", "address": "Lekki Phase 1", "coordinates": [3.4805, 6.4433]},
    {"name": "Ikeja City Mall", "type": "mall", "state": "Lagos", "lga": "Ikeja", "area": "Alausa", "address": "Obafemi Awolowo Way, Alausa", "coordinates": [3.3573, 6.6142]},
    {"name": "The Palms Shopping Mall", "type": "mall", "state": "Lagos", "lga": "Eti-Osa", "area": "Lekki", "address": "1 Bisway Street, Lekki", "coordinates": [3.4660, 6.4350]},
    {"name": "Circle Mall", "type": "mall", "state": "Lagos", "lga": "Eti-Osa", "area": "Jakande", "address": "Lekki-Epe Expressway, Jakande", "coordinates": [3.5100, 6.4380]},
    {"name": "Yaba Market", "type": "market", "state": "Lagos", "lga": "Lagos Mainland", "area": "Yaba", "address": "Tejuosho, Yaba", "coordinates": [3.3750, 6.5120]},
    # Abuja
    {"name": "Wuse Market", "type": "market", "state": "Abuja", "lga": "Abuja Municipal", "area": "Wuse", "address": "Wuse Zone 5", "coordinates": [7.4710, 9.0680]},
    {"name": "Garki Market", "type": "market", "state": "Abuja", "lga": "Abuja Municipal", "area": "Garki", "address": "Garki Area 1", "coordinates": [7.4870, 9.0310]},
    {"name": "Jabi Lake Mall", "type": "mall", "state": "Abuja", "lga": "Abuja Municipal", "area": "Jabi", "address": "Bala Sokoto Way, Jabi", "coordinates": [7.4230, 9.0710]},
    {"name": "Ceddi Plaza", "type": "plaza", "state": "Abuja", "lga": "Abuja Municipal", "area": "Central Business District", "address": "Tafawa Balewa Way", "coordinates": [7.4920, 9.0560]},
    # Kano
    {"name": "Kurmi Market", "type": "market", "state": "Kano", "lga": "Kano Municipal", "area": "Jakara", "address": "Kurmi, Old City", "coordinates": [8.5150, 11.9980]},
    {"name": "Sabon Gari Market", "type": "market", "state": "Kano", "lga": "Fagge", "area": "Sabon Gari", "address": "Sabon Gari", "coordinates": [8.5320, 12.0100]},
    {"name": "Kantin Kwari Market", "type": "market", "state": "Kano", "lga": "Fagge", "area": "Kantin Kwari", "address": "Kantin Kwari", "coordinates": [8.5250, 12.0050]},
    # Rivers
    {"name": "Mile 1 Market", "type": "market", "state": "Rivers", "lga": "Port Harcourt", "area": "Diobu", "address": "Ikwerre Road, Mile 1", "coordinates": [6.9990, 4.7900]},
    {"name": "Port Harcourt Mall", "type": "mall", "state": "Rivers", "lga": "Port Harcourt", "area": "Old GRA", "address": "Azikiwe Road", "coordinates": [7.0134, 4.7780]},
    {"name": "Oil Mill Market", "type": "market", "state": "Rivers", "lga": "Obio-Akpor", "area": "Rumukwurushi", "address": "Aba Road, Oil Mill", "coordinates": [7.0600, 4.8600]},
    # Oyo
    {"name": "Bodija Market", "type": "market", "state": "Oyo", "lga": "Ibadan North", "area": "Bodija", "address": "Bodija Estate", "coordinates": [3.9150, 7.4350]},
    {"name": "Dugbe Market", "type": "market", "state": "Oyo", "lga": "Ibadan North-West", "area": "Dugbe", "address": "Dugbe", "coordinates": [3.8850, 7.3880]},
    {"name": "Ventura Mall", "type": "mall", "state": "Oyo", "lga": "Ibadan South-West", "area": "Samonda", "address": "Samonda, Ibadan", "coordinates": [3.9000, 7.4420]},
    # Anambra
    {"name": "Onitsha Main Market", "type": "market", "state": "Anambra", "lga": "Onitsha North", "area": "Onitsha", "address": "New Market Road, Onitsha", "coordinates": [6.7850, 6.1550]},
    {"name": "Eke Awka Market", "type": "market", "state": "Anambra", "lga": "Awka South", "area": "Awka", "address": "Zik Avenue, Awka", "coordinates": [7.0740, 6.2110]},
    # Abia
    {"name": "Ariaria International Market", "type": "market", "state": "Abia", "lga": "Aba North", "area": "Aba", "address": "Faulks Road, Aba", "coordinates": [7.3460, 5.1230]},
    # Enugu
    {"name": "Ogbete Main Market", "type": "market", "state": "Enugu", "lga": "Enugu North", "area": "Ogbete", "address": "Ogbete, Enugu", "coordinates": [7.4930, 6.4430]},
    {"name": "Polo Park Mall", "type": "mall", "state": "Enugu", "lga": "Enugu North", "area": "GRA", "address": "Abakaliki Road, Enugu", "coordinates": [7.5100, 6.4500]},
    # Kaduna
    {"name": "Kaduna Central Market", "type": "market", "state": "Kaduna", "lga": "Kaduna North", "area": "Central", "address": "Ahmadu Bello Way", "coordinates": [7.4350, 10.5250]},
    # Edo
    {"name": "Oba Market", "type": "market", "state": "Edo", "lga": "Oredo", "area": "Ring Road", "address": "King's Square, Benin City", "coordinates": [5.6220, 6.3350]},
    # Plateau
    {"name": "Terminus Market", "type": "market", "state": "Plateau", "lga": "Jos North", "area": "Terminus", "address": "Ahmadu Bello Way, Jos", "coordinates": [8.8900, 9.9200]},
]
