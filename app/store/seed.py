"""
Sample registry data for development and demos.

Loaded by ``init_store`` when ``SEED_SAMPLE_DATA`` is on and the store holds
no users. Writes go through the public store contract, so every seeded
site/staff/asset/program gets its creation activity like any other row.

Seeded logins: ``admin`` / ``admin123`` (Admin) and ``field`` / ``field123``
(Field Assessor). Change them before exposing a seeded instance.
"""

import logging

from app.utils.crypto import BCRYPT_ROUNDS, hash_password

logger = logging.getLogger(__name__)

SEED_USERS = [
    {
        "username": "admin", "password": "admin123", "name": "System Admin",
        "role": "Admin", "email": "admin@nwcetc.edu.za", "phone": "+27123456789",
    },
    {
        "username": "field", "password": "field123", "name": "John Doe",
        "role": "Field Assessor", "email": "john.doe@nwcetc.edu.za", "phone": "+27123456790",
    },
]

# (site payload, last visit) where last visit is (user index, ISO timestamp) or None
SEED_SITES = [
    ({
        "site_id": "CLC-001", "name": "Klerksdorp CLC", "type": "CLC",
        "district": "Dr Kenneth Kaunda",
        "physical_address": "123 Anderson Street, Klerksdorp, 2571",
        "gps_lat": -26.8521, "gps_lng": 26.6693,
        "host_department": "Department of Public Works",
        "agreement_type": "Rented", "agreement_details": "5-year lease agreement",
        "contract_number": "NWPW-2015-0342", "contract_term": "5 Years (Renewable)",
        "renewal_date": "2025-03-11",
        "contact_person": "Ms. T. Naidoo", "contact_email": "tnaidoo@nwcetc.edu.za",
        "contact_phone": "018 462 5438", "establishment_date": "2015-03-12",
        "operational_status": "Active", "assessment_status": "Data Verified",
        "total_area": 1200, "classrooms": 8, "offices": 4, "computer_labs": 1, "workshops": 2,
        "has_library": True, "has_student_common_areas": True, "has_staff_facilities": True,
        "accessibility_features": "Ramps, elevator",
        "internet_connectivity": "Fiber, 100Mbps",
        "security_features": "Security guards, CCTV",
        "building_condition": "Good", "electrical_condition": "Good",
        "plumbing_condition": "Fair", "interior_condition": "Good", "exterior_condition": "Good",
        "last_renovation_date": "2018-06-15",
        "notes": "Main CLC for the Dr Kenneth Kaunda district",
        "images": [
            "https://example.com/images/klerksdorp1.jpg",
            "https://example.com/images/klerksdorp2.jpg",
        ],
    }, (1, "2024-01-15T00:00:00+00:00")),
    ({
        "site_id": "CLC-002", "name": "Potchefstroom CLC", "type": "CLC",
        "district": "Dr Kenneth Kaunda",
        "physical_address": "45 Meyer Street, Potchefstroom, 2520",
        "gps_lat": -26.7145, "gps_lng": 27.0970,
        "host_department": "Department of Education", "agreement_type": "Owned",
        "contact_person": "Mr. P. Molefe", "contact_email": "pmolefe@nwcetc.edu.za",
        "contact_phone": "018 293 1234", "establishment_date": "2016-01-20",
        "operational_status": "Active", "assessment_status": "Visited",
        "classrooms": 6, "offices": 3, "computer_labs": 1,
        "has_library": False, "has_student_common_areas": True, "has_staff_facilities": True,
        "building_condition": "Good", "electrical_condition": "Fair",
        "plumbing_condition": "Fair", "interior_condition": "Good", "exterior_condition": "Fair",
        "images": ["https://example.com/images/potch1.jpg"],
    }, (1, "2024-01-16T00:00:00+00:00")),
    ({
        "site_id": "SAT-001", "name": "Jouberton Satellite", "type": "Satellite",
        "district": "Dr Kenneth Kaunda",
        "physical_address": "Jouberton Community Hall, Jouberton, Klerksdorp",
        "gps_lat": -26.8678, "gps_lng": 26.6322,
        "host_department": "Department of Social Development", "agreement_type": "Partnership",
        "contact_person": "Mrs. N. Khumalo", "contact_email": "nkhumalo@nwcetc.edu.za",
        "contact_phone": "018 462 9876", "establishment_date": "2017-02-10",
        "operational_status": "Active", "assessment_status": "To Visit",
        "classrooms": 3,
        "has_library": False, "has_student_common_areas": False, "has_staff_facilities": False,
        "building_condition": "Fair", "electrical_condition": "Poor",
        "plumbing_condition": "Poor", "interior_condition": "Fair", "exterior_condition": "Fair",
    }, None),
    ({
        "site_id": "CLC-003", "name": "Mahikeng CLC", "type": "CLC",
        "district": "Ngaka Modiri Molema",
        "physical_address": "18 University Drive, Mahikeng, 2745",
        "gps_lat": -25.8560, "gps_lng": 25.6440,
        "host_department": "Department of Education", "agreement_type": "Owned",
        "contact_person": "Dr. B. Matlou", "contact_email": "bmatlou@nwcetc.edu.za",
        "contact_phone": "018 384 5678", "establishment_date": "2014-09-01",
        "operational_status": "Active", "assessment_status": "To Visit",
        "classrooms": 10, "offices": 5, "computer_labs": 2, "workshops": 1,
        "has_library": True, "has_student_common_areas": True, "has_staff_facilities": True,
        "building_condition": "Good", "electrical_condition": "Good",
        "plumbing_condition": "Good", "interior_condition": "Good", "exterior_condition": "Good",
        "images": [
            "https://example.com/images/mahikeng1.jpg",
            "https://example.com/images/mahikeng2.jpg",
        ],
    }, None),
    ({
        "site_id": "CLC-004", "name": "Rustenburg CLC", "type": "CLC",
        "district": "Bojanala",
        "physical_address": "56 Klopper Street, Rustenburg, 0299",
        "gps_lat": -25.6667, "gps_lng": 27.2424,
        "host_department": "Department of Public Works", "agreement_type": "Rented",
        "contract_number": "NWPW-2016-0123", "contract_term": "10 Years",
        "renewal_date": "2026-05-20",
        "contact_person": "Ms. L. Motsepe", "contact_email": "lmotsepe@nwcetc.edu.za",
        "contact_phone": "014 592 3456", "establishment_date": "2016-05-20",
        "operational_status": "Active", "assessment_status": "Data Verified",
        "total_area": 1500, "classrooms": 12, "offices": 6, "computer_labs": 2, "workshops": 3,
        "has_library": True, "has_student_common_areas": True, "has_staff_facilities": True,
        "building_condition": "Good", "electrical_condition": "Good",
        "plumbing_condition": "Good", "interior_condition": "Good", "exterior_condition": "Good",
        "last_renovation_date": "2020-01-10",
        "images": ["https://example.com/images/rustenburg1.jpg"],
    }, (1, "2023-11-25T00:00:00+00:00")),
    ({
        "site_id": "SAT-015", "name": "Vryburg Satellite", "type": "Satellite",
        "district": "Dr Ruth Segomotsi Mompati",
        "physical_address": "25 Market Street, Vryburg, 8601",
        "gps_lat": -27.0144, "gps_lng": 24.7282,
        "host_department": "Department of Education", "agreement_type": "Partnership",
        "contact_person": "Mr. T. Plaatje", "contact_email": "tplaatje@nwcetc.edu.za",
        "contact_phone": "053 927 1234", "establishment_date": "2018-03-15",
        "operational_status": "Active", "assessment_status": "Data Verified",
        "classrooms": 4, "offices": 1,
        "has_library": False, "has_student_common_areas": False, "has_staff_facilities": True,
        "building_condition": "Fair", "electrical_condition": "Fair",
        "plumbing_condition": "Fair", "interior_condition": "Fair", "exterior_condition": "Good",
    }, (1, "2024-01-10T00:00:00+00:00")),
]

# site index refers to SEED_SITES order
SEED_STAFF = [
    ({
        "staff_id": "STAFF-001", "first_name": "Thabo", "last_name": "Mokoena",
        "position": "Center Manager", "email": "tmokoena@nwcetc.edu.za",
        "phone": "018 462 5440", "verified": True,
        "qualifications": ["M.Ed. Adult Education", "B.Ed. (Hons)"],
        "skills": ["Management", "Curriculum Development", "Staff Leadership"],
        "workload": 40,
    }, 0),
    ({
        "staff_id": "STAFF-002", "first_name": "Sarah", "last_name": "Smith",
        "position": "Lecturer - Mathematics", "email": "ssmith@nwcetc.edu.za",
        "phone": "018 462 5441", "verified": True,
        "qualifications": ["B.Sc. Mathematics", "PGCE"],
        "skills": ["Mathematics", "Adult Numeracy", "Assessment"],
        "workload": 32,
    }, 0),
    ({
        "staff_id": "STAFF-003", "first_name": "John", "last_name": "Ndlovu",
        "position": "Lecturer - Computer Skills", "email": "jndlovu@nwcetc.edu.za",
        "phone": "018 462 5442", "verified": True,
        "qualifications": ["Diploma in IT", "N6 Computer Studies"],
        "skills": ["Computer Literacy", "Office Applications", "Basic Programming"],
        "workload": 36,
    }, 0),
    ({
        "staff_id": "STAFF-004", "first_name": "Rachel", "last_name": "Mtsweni",
        "position": "Center Manager", "email": "rmtsweni@nwcetc.edu.za",
        "phone": "018 293 1235", "verified": False,
        "qualifications": ["B.Ed. Management", "Diploma in Adult Education"],
        "skills": ["Leadership", "Administration", "Community Engagement"],
        "workload": 40,
    }, 1),
    ({
        "staff_id": "STAFF-005", "first_name": "Precious", "last_name": "Moloi",
        "position": "Administrator", "email": "pmoloi@nwcetc.edu.za",
        "phone": "018 293 1236", "verified": False,
        "qualifications": ["Diploma in Office Administration"],
        "skills": ["Administration", "Record Keeping", "Customer Service"],
        "workload": 40,
    }, 1),
]

SEED_ASSETS = [
    ({
        "asset_id": "ASSET-001", "name": "Computer Lab Desktop PC", "category": "IT",
        "description": "Dell OptiPlex 3080 Desktop Computers",
        "manufacturer": "Dell", "model": "OptiPlex 3080",
        "condition": "Good", "purchase_date": "2021-02-15",
        "last_maintenance_date": "2023-10-10", "location": "Computer lab",
        "notes": "20 units in computer lab",
        "images": ["https://example.com/images/dell-pc.jpg"],
    }, 0),
    ({
        "asset_id": "ASSET-002", "name": "Smart Board", "category": "Teaching",
        "description": "SMART Board MX Pro Series Interactive Display",
        "condition": "Good", "purchase_date": "2022-05-20",
        "last_maintenance_date": "2023-11-15", "location": "Main classroom",
        "notes": "Installed in main classroom",
        "images": ["https://example.com/images/smartboard.jpg"],
    }, 0),
    ({
        "asset_id": "ASSET-003", "name": "Classroom Furniture Set", "category": "Furniture",
        "description": "30 student desks and chairs",
        "condition": "Fair", "purchase_date": "2018-01-10",
        "notes": "Some chairs need repair",
    }, 1),
    ({
        "asset_id": "ASSET-004", "name": "Printer/Copier", "category": "Office",
        "description": "Xerox WorkCentre 6515 Multifunction Printer",
        "manufacturer": "Xerox", "model": "WorkCentre 6515",
        "condition": "Poor", "purchase_date": "2019-03-25",
        "last_maintenance_date": "2022-06-30",
        "notes": "Frequent paper jams, needs replacement",
    }, 1),
]

SEED_PROGRAMS = [
    ({
        "program_id": "PROG-001",
        "name": "Adult Basic Education and Training (ABET) Level 4",
        "category": "Basic Education",
        "description": "Equivalent to Grade 9, providing foundational literacy and numeracy",
        "enrollment_count": 45, "start_date": "2023-01-15", "end_date": "2023-11-30",
        "status": "Active", "notes": "Evening classes available",
    }, 0),
    ({
        "program_id": "PROG-002",
        "name": "National Certificate: Small Business Financial Management",
        "category": "Vocational",
        "description": "NQF Level 4 qualification for small business owners",
        "enrollment_count": 32, "start_date": "2023-02-01", "end_date": "2023-10-31",
        "status": "Active", "notes": "Weekend classes available",
    }, 0),
    ({
        "program_id": "PROG-003",
        "name": "National Certificate: Information Technology",
        "category": "Vocational",
        "description": "NQF Level 4 qualification in basic IT skills",
        "enrollment_count": 28, "start_date": "2023-03-01", "end_date": "2023-11-30",
        "status": "Active",
    }, 1),
    ({
        "program_id": "PROG-004",
        "name": "Early Childhood Development",
        "category": "Community Development",
        "description": "Certificate course for ECD practitioners",
        "enrollment_count": 18, "start_date": "2023-05-15", "end_date": "2023-09-30",
        "status": "Inactive", "notes": "To be restarted in January 2024",
    }, 1),
    ({
        "program_id": "PROG-005",
        "name": "Plumbing Skills Program",
        "category": "Artisan Development",
        "description": "Basic plumbing skills training",
        "status": "Planned", "notes": "Pending funding approval",
    }, 0),
]

# (type, description, site index, user index)
SEED_ACTIVITIES = [
    ("site_visit", "Completed site visit to Klerksdorp CLC", 0, 1),
    ("data_verification", "Verified data for Klerksdorp CLC", 0, 0),
    ("site_visit", "Completed site visit to Potchefstroom CLC", 1, 1),
    ("photo_upload", "Added 5 new photos for Mahikeng CLC", 3, 1),
    ("staff_update", "Updated 8 staff records at Vryburg Satellite", 5, 0),
]


def seed_sample_data(store, *, rounds: int = BCRYPT_ROUNDS) -> bool:
    """Populate an empty *store*. Returns False when users already exist."""
    if store.get_all_users():
        logger.info("Store already populated, skipping sample data")
        return False

    users = []
    for entry in SEED_USERS:
        data = {k: v for k, v in entry.items() if k != "password"}
        data["password_hash"] = hash_password(entry["password"], rounds=rounds)
        users.append(store.create_user(data))
    admin_id = users[0]["id"]

    sites = []
    for payload, last_visit in SEED_SITES:
        site = store.create_site(payload, performed_by=admin_id)
        if last_visit is not None:
            user_index, visited_at = last_visit
            site = store.update_site(site["id"], {
                "last_visited_by": users[user_index]["id"],
                "last_visit_date": visited_at,
            })
        sites.append(site)

    for payload, site_index in SEED_STAFF:
        store.create_staff({**payload, "site_id": sites[site_index]["id"]}, performed_by=admin_id)
    for payload, site_index in SEED_ASSETS:
        store.create_asset({**payload, "site_id": sites[site_index]["id"]}, performed_by=admin_id)
    for payload, site_index in SEED_PROGRAMS:
        store.create_program({**payload, "site_id": sites[site_index]["id"]}, performed_by=admin_id)

    for activity_type, description, site_index, user_index in SEED_ACTIVITIES:
        store.create_activity({
            "type": activity_type,
            "description": description,
            "related_entity_type": "site",
            "related_entity_id": sites[site_index]["id"],
            "performed_by": users[user_index]["id"],
        })

    logger.info(
        "Seeded sample data: %d users, %d sites, %d staff, %d assets, %d programs",
        len(users), len(sites), len(SEED_STAFF), len(SEED_ASSETS), len(SEED_PROGRAMS),
    )
    return True
