"""
Reference data seeding: U.S. states/territories and the base taxonomy list.

Idempotent: rows that already exist (by code) are left untouched.
"""

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection
from models.reference import State, Taxonomy
import logging

logger = logging.getLogger(__name__)

STATES = [
    ("AL", "Alabama"), ("AK", "Alaska"), ("AZ", "Arizona"), ("AR", "Arkansas"),
    ("CA", "California"), ("CO", "Colorado"), ("CT", "Connecticut"), ("DE", "Delaware"),
    ("FL", "Florida"), ("GA", "Georgia"), ("HI", "Hawaii"), ("ID", "Idaho"),
    ("IL", "Illinois"), ("IN", "Indiana"), ("IA", "Iowa"), ("KS", "Kansas"),
    ("KY", "Kentucky"), ("LA", "Louisiana"), ("ME", "Maine"), ("MD", "Maryland"),
    ("MA", "Massachusetts"), ("MI", "Michigan"), ("MN", "Minnesota"), ("MS", "Mississippi"),
    ("MO", "Missouri"), ("MT", "Montana"), ("NE", "Nebraska"), ("NV", "Nevada"),
    ("NH", "New Hampshire"), ("NJ", "New Jersey"), ("NM", "New Mexico"), ("NY", "New York"),
    ("NC", "North Carolina"), ("ND", "North Dakota"), ("OH", "Ohio"), ("OK", "Oklahoma"),
    ("OR", "Oregon"), ("PA", "Pennsylvania"), ("RI", "Rhode Island"), ("SC", "South Carolina"),
    ("SD", "South Dakota"), ("TN", "Tennessee"), ("TX", "Texas"), ("UT", "Utah"),
    ("VT", "Vermont"), ("VA", "Virginia"), ("WA", "Washington"), ("WV", "West Virginia"),
    ("WI", "Wisconsin"), ("WY", "Wyoming"),
    ("DC", "District of Columbia"),
    ("AS", "American Samoa"), ("GU", "Guam"), ("MP", "Northern Mariana Islands"),
    ("PR", "Puerto Rico"), ("VI", "U.S. Virgin Islands"),
]

_PHYSICIANS = "Allopathic & Osteopathic Physicians"
_ADVANCED_PRACTICE = "Physician Assistants & Advanced Practice Nursing Providers"
_NURSING = "Nursing Service Providers"
_DENTAL = "Dental Providers"
_REHAB = "Respiratory, Developmental, Rehabilitative and Restorative Service Providers"
_AMBULATORY = "Ambulatory Health Care Facilities"
_HOSPITALS = "Hospitals"

TAXONOMIES = [
    ("207Q00000X", _PHYSICIANS, "Family Medicine", "A physician who specializes in family medicine"),
    ("208D00000X", _PHYSICIANS, "General Practice", "A physician who provides general medical care"),
    ("207R00000X", _PHYSICIANS, "Internal Medicine", "A physician who specializes in internal medicine"),
    ("207V00000X", _PHYSICIANS, "Obstetrics & Gynecology", "A physician specializing in women's health"),
    ("208000000X", _PHYSICIANS, "Pediatrics", "A physician who specializes in children's health"),
    ("207T00000X", _PHYSICIANS, "Neurological Surgery", "A physician specializing in brain and nerve surgery"),
    ("207N00000X", _PHYSICIANS, "Dermatology", "A physician specializing in skin conditions"),
    ("207K00000X", _PHYSICIANS, "Allergy & Immunology", "A physician specializing in allergies and immune system"),
    ("207L00000X", _PHYSICIANS, "Anesthesiology", "A physician specializing in anesthesia"),
    ("207W00000X", _PHYSICIANS, "Ophthalmology", "A physician specializing in eye care"),
    ("207X00000X", _PHYSICIANS, "Orthopaedic Surgery", "A physician specializing in bone and joint surgery"),
    ("207Y00000X", _PHYSICIANS, "Otolaryngology", "A physician specializing in ear, nose, and throat"),
    ("208100000X", _PHYSICIANS, "Physical Medicine & Rehabilitation", "A physician specializing in rehabilitation"),
    ("208200000X", _PHYSICIANS, "Plastic Surgery", "A physician specializing in reconstructive surgery"),
    ("208G00000X", _PHYSICIANS, "Thoracic Surgery (Cardiothoracic Vascular Surgery)", "A physician specializing in chest surgery"),
    ("208C00000X", _PHYSICIANS, "Colon & Rectal Surgery", "A physician specializing in colon and rectal surgery"),
    ("208M00000X", _PHYSICIANS, "Hospitalist", "A physician who practices in a hospital setting"),
    ("363L00000X", _ADVANCED_PRACTICE, "Nurse Practitioner", "An advanced practice registered nurse"),
    ("363A00000X", _ADVANCED_PRACTICE, "Physician Assistant", "A healthcare professional who practices medicine under supervision"),
    ("364S00000X", _ADVANCED_PRACTICE, "Clinical Nurse Specialist", "An advanced practice nurse with specialized expertise"),
    ("367500000X", _ADVANCED_PRACTICE, "Nurse Anesthetist, Certified Registered", "An advanced practice nurse specializing in anesthesia"),
    ("367A00000X", _ADVANCED_PRACTICE, "Advanced Practice Midwife", "An advanced practice nurse specializing in midwifery"),
    ("163W00000X", _NURSING, "Registered Nurse", "A licensed nurse providing patient care"),
    ("164W00000X", _NURSING, "Licensed Practical Nurse", "A licensed nurse providing basic patient care"),
    ("122300000X", _DENTAL, "Dentist", "A dental healthcare provider"),
    ("1223G0001X", _DENTAL, "General Practice", "A dentist providing general dental care"),
    ("1223P0221X", _DENTAL, "Periodontics", "A dentist specializing in gum disease"),
    ("1223E0200X", _DENTAL, "Endodontics", "A dentist specializing in root canal treatment"),
    ("1223S0112X", _DENTAL, "Oral and Maxillofacial Surgery", "A dentist specializing in oral surgery"),
    ("1223X0400X", _DENTAL, "Orthodontics and Dentofacial Orthopedics", "A dentist specializing in teeth alignment"),
    ("152W00000X", "Eye and Vision Services Providers", "Optometrist", "A provider of vision and eye care"),
    ("133V00000X", "Dietary & Nutritional Service Providers", "Dietitian, Registered", "A registered dietitian providing nutrition care"),
    ("225100000X", _REHAB, "Physical Therapist", "A provider of physical therapy"),
    ("225X00000X", _REHAB, "Occupational Therapist", "A provider of occupational therapy"),
    ("235Z00000X", _REHAB, "Speech-Language Pathologist", "A provider of speech therapy"),
    ("261QR1300X", _AMBULATORY, "Clinic/Center, Radiology", "A facility providing radiology services"),
    ("261QM0850X", _AMBULATORY, "Clinic/Center, Adult Mental Health", "A facility providing mental health services"),
    ("282N00000X", _HOSPITALS, "General Acute Care Hospital", "A general hospital"),
    ("283Q00000X", _HOSPITALS, "Psychiatric Hospital", "A psychiatric hospital"),
    ("291U00000X", "Residential Treatment Facilities", "Rehabilitation, Substance Use Disorder", "A substance abuse treatment facility"),
]


async def seed_reference_data(conn: AsyncConnection) -> None:
    """Insert states and taxonomies that are not present yet."""
    await conn.execute(
        insert(State)
        .values([{"code": code, "name": name} for code, name in STATES])
        .on_conflict_do_nothing(index_elements=["code"])
    )
    await conn.execute(
        insert(Taxonomy)
        .values([
            {"code": code, "classification": classification, "specialization": specialization, "description": description}
            for code, classification, specialization, description in TAXONOMIES
        ])
        .on_conflict_do_nothing(index_elements=["code"])
    )
    logger.info(f"Seeded {len(STATES)} states and {len(TAXONOMIES)} taxonomies")
