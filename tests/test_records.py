import json
import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from catalog.models import Ingredient, Mechanism
from catalog.records import CONTACTS, PRODUCTS, parse_blog, parse_category, parse_contact, parse_product, unwrap_list, unwrap_record


class TestParseProduct(unittest.TestCase):
    def test_parses_json_encoded_groups(self) -> None:
        raw = {
            "_id": "665f",
            "productName": "Napa",
            "genericName": "Paracetamol",
            "strength": "500mg",
            "mrp": 12.5,
            "prescriptionRequired": "false",
            "isFeatured": True,
            "category": {"_id": "c1", "name": "Analgesics"},
            "composition": json.dumps([{"name": "Paracetamol", "strength": "500mg"}]),
            "mechanismOfAction": [{"drug": "Paracetamol", "moa": "COX inhibition"}],
            "uses": json.dumps(["Fever"]),
            "productImage": ["/uploads/a.png", "/uploads/b.png"],
        }
        record = parse_product(raw)
        self.assertEqual(record.id, "665f")
        self.assertEqual(record.fields.mrp, "12.5")
        self.assertFalse(record.fields.prescription_required)
        self.assertTrue(record.fields.is_featured)
        self.assertEqual(record.fields.category, "c1")
        self.assertEqual(record.composition, [Ingredient("Paracetamol", "500mg")])
        self.assertEqual(record.mechanism_of_action, [Mechanism("Paracetamol", "COX inhibition")])
        self.assertEqual(record.uses, ["Fever"])
        self.assertEqual(record.images, ["/uploads/a.png", "/uploads/b.png"])

    def test_missing_flags_and_legacy_image(self) -> None:
        record = parse_product({"_id": "p2", "productImage": "/uploads/only.png"})
        self.assertFalse(record.fields.prescription_required)
        self.assertFalse(record.fields.is_featured)
        self.assertEqual(record.fields.color, "")
        self.assertEqual(record.images, ["/uploads/only.png"])
        self.assertEqual(record.composition, [])

    def test_bad_json_kept_as_single_entry(self) -> None:
        with self.assertLogs("catalog.records", level="WARNING"):
            record = parse_product({"_id": "p3", "uses": "not json"})
        self.assertEqual(record.uses, ["not json"])


class TestOtherCollections(unittest.TestCase):
    def test_parse_category_blog_contact(self) -> None:
        self.assertEqual(parse_category({"_id": "c1", "name": "Analgesics"}).name, "Analgesics")
        blog = parse_blog({"_id": "b1", "title": "Hello", "imageUrl": "", "senderName": "Editor"})
        self.assertIsNone(blog.image_url)
        self.assertEqual(blog.sender_name, "Editor")
        contact = parse_contact({"_id": "m1", "fullName": "A", "email": "a@example.com", "queryType": "general"})
        self.assertEqual(contact.query_type, "general")

    def test_unwrap_list(self) -> None:
        self.assertEqual(unwrap_list({"posts": [{"_id": "1"}, "junk"]}, ("posts", "data")), [{"_id": "1"}])
        self.assertEqual(unwrap_list([{"_id": "1"}], PRODUCTS.list_keys), [{"_id": "1"}])
        self.assertIsNone(unwrap_list({"items": []}, PRODUCTS.list_keys))

    def test_unwrap_record(self) -> None:
        self.assertEqual(unwrap_record({"success": True, "data": {"_id": "1"}}), {"_id": "1"})
        self.assertEqual(unwrap_record({"_id": "2"}), {"_id": "2"})
        self.assertIsNone(unwrap_record({"success": True, "message": "ok"}))

    def test_contacts_sorted_newest_first(self) -> None:
        records = [
            parse_contact({"_id": "1", "createdAt": "2024-01-01T00:00:00Z"}),
            parse_contact({"_id": "2", "createdAt": "2024-03-01T00:00:00Z"}),
            parse_contact({"_id": "3", "createdAt": "2024-02-01T00:00:00Z"}),
        ]
        self.assertEqual([r.id for r in CONTACTS.sort(records)], ["2", "3", "1"])


if __name__ == "__main__":
    unittest.main()
