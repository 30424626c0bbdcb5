import os, sys, pdb
import unittest as test

from hyperaction.resource import Resource, Paged, Item, Nested, ResourceId

class TestResource(test.TestCase):

    def test_names(self):
        self.assertEqual(Paged("people").name, "people")
        self.assertEqual(Item("person").name, "person")
        nested = Nested("person", "books")
        self.assertEqual(nested.name, "books")
        self.assertEqual(nested.parent_name, "person")

    def test_equality(self):
        self.assertEqual(Paged("people"), Paged("people"))
        self.assertNotEqual(Paged("people"), Item("people"))
        self.assertNotEqual(Nested("person", "books"), Nested("author", "books"))
        self.assertEqual(Nested("person", "books"), Nested("person", "books"))
        self.assertNotEqual(Nested("person", "books"), Paged("books"))
        self.assertEqual(len({Paged("a"), Paged("a"), Item("a")}), 2)

    def test_bad_names(self):
        with self.assertRaises(ValueError):
            Paged("")
        with self.assertRaises(ValueError):
            Nested("", "books")

    def test_resource_id(self):
        rid = ResourceId(Item("person"), "tom")
        self.assertEqual(rid.as_object(), "tom")
        self.assertEqual(rid.name, "person")
        self.assertEqual(rid.resource, Item("person"))
        self.assertEqual(rid, ResourceId(Item("person"), "tom"))
        self.assertNotEqual(rid, ResourceId(Item("person"), "ann"))
        self.assertNotEqual(rid, ResourceId(Item("author"), "tom"))
        self.assertEqual(hash(rid), hash(ResourceId(Item("person"), "tom")))
        self.assertEqual(repr(rid), "ResourceId(person, 'tom')")


if __name__ == '__main__':
    test.main()
