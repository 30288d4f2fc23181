import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List

from storage.config import ConfigError, require_settings, setup_logging
from storage.document_store import DocumentStore
from storage.mongo_store import MongoDocumentStore

setup_logging()
logger = logging.getLogger(__name__)

CONTACT_FORM = {
    "name": "Contact Form",
    "slug": "contact",
    "status": "active",
    "fields": [
        {"type": "text", "label": "Όνομα", "name": "firstName", "required": True, "placeholder": "Το όνομά σας"},
        {"type": "text", "label": "Επώνυμο", "name": "lastName", "required": True, "placeholder": "Το επώνυμό σας"},
        {"type": "email", "label": "Email", "name": "email", "required": True, "placeholder": "email@example.com"},
        {"type": "tel", "label": "Τηλέφωνο", "name": "phone", "required": False, "placeholder": "+30 123 456 7890"},
        {"type": "text", "label": "Θέμα", "name": "subject", "required": True, "placeholder": "Πώς μπορούμε να σας βοηθήσουμε;"},
        {"type": "textarea", "label": "Μήνυμα", "name": "message", "required": True, "placeholder": "Γράψτε το μήνυμά σας εδώ..."},
    ],
    "successMessage": "Ευχαριστούμε! Το μήνυμά σας στάλθηκε επιτυχώς.",
}

REGISTRATION_FORM = {
    "name": "Registration Form",
    "slug": "registration",
    "status": "active",
    "fields": [
        {"type": "text", "label": "Όνομα Παιδιού", "name": "childFirstName", "required": True},
        {"type": "text", "label": "Επώνυμο", "name": "childLastName", "required": True},
        {"type": "number", "label": "Ηλικία", "name": "age", "required": True},
        {"type": "text", "label": "Όνομα Γονέα", "name": "parentName", "required": True},
        {"type": "tel", "label": "Τηλέφωνο", "name": "phone", "required": True, "placeholder": "+30 123 456 7890"},
        {"type": "email", "label": "Email", "name": "email", "required": True, "placeholder": "email@example.com"},
        {
            "type": "select",
            "label": "Επιλογή Τμήματος",
            "name": "department",
            "required": True,
            "options": [
                {"label": "Καλλιτεχνική Γυμναστική", "value": "artistic"},
                {"label": "Ρυθμική Γυμναστική", "value": "rhythmic"},
                {"label": "Προαγωνιστικά Τμήματα", "value": "precompetitive"},
                {"label": "Παιδικά Τμήματα", "value": "children"},
                {"label": "Γυμναστική για Όλους", "value": "gfa"},
                {"label": "Adults Group GfA", "value": "adults"},
            ],
        },
        {"type": "textarea", "label": "Μήνυμα", "name": "message", "required": False},
        {
            "type": "checkbox",
            "label": "Αποδέχομαι τους Όρους Χρήσης και την Πολιτική Απορρήτου",
            "name": "terms",
            "required": True,
        },
    ],
    "successMessage": "Ευχαριστούμε! Η εγγραφή σας υποβλήθηκε επιτυχώς.",
}

FORMS = [CONTACT_FORM, REGISTRATION_FORM]


async def seed_forms(store: DocumentStore, tenant_code: str) -> List[Dict[str, Any]]:
    tenants = await store.find("tenants", where={"code": {"equals": tenant_code}}, limit=1, override_access=True)
    if not tenants.docs:
        raise LookupError(f'Tenant "{tenant_code}" not found. Please sync the site first.')
    tenant_id = tenants.docs[0]["id"]

    seeded = []
    for form in FORMS:
        data = dict(form, tenant=tenant_id)
        existing = await store.find(
            "forms",
            where={"and": [{"tenant": {"equals": tenant_id}}, {"slug": {"equals": form["slug"]}}]},
            limit=1,
            override_access=True,
        )
        if existing.docs:
            logger.info(f"Updating {form['slug']} form: {existing.docs[0]['id']}")
            seeded.append(await store.update("forms", existing.docs[0]["id"], data, override_access=True))
        else:
            logger.info(f"Creating {form['slug']} form")
            seeded.append(await store.create("forms", data, override_access=True))
    return seeded


async def main(argv=None):
    parser = argparse.ArgumentParser(description="Create or update the contact and registration forms")
    parser.add_argument("-t", "--tenant", default="kallitechnia", help="Tenant code")
    args = parser.parse_args(argv)

    try:
        require_settings("MONGO_URI")
    except ConfigError as e:
        logger.critical(f"{e}")
        sys.exit(1)

    store = MongoDocumentStore()
    try:
        forms = await seed_forms(store, args.tenant)
        logger.info(f"Forms created/updated: {', '.join(f['slug'] for f in forms)}")
    except Exception as e:
        logger.critical(f"Failed to create forms: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await store.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
