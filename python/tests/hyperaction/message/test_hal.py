import os, sys, pdb, json
import unittest as test

from hyperaction.message import HALMessageMapper, Representor, HAL_CONTENT_TYPE
from hyperaction.pagination import Page, Pagination
from hyperaction.resource import Paged, Nested

class Model(object):
    def __init__(self, id, name=None, other_id=None, other=None):
        self.id = id
        self.name = name
        self.other_id = other_id
        self.other = other

class Other(object):
    def __init__(self, id, title):
        self.id = id
        self.title = title

def model_representor():
    return Representor("model", lambda m: m.id, Model) \
               .field("name", lambda m: m.name) \
               .link("docs", "http://example.com/docs") \
               .binary("binary1") \
               .linked_model("other", "other", lambda m: m.other_id) \
               .related_collection("models", "models")

def other_representor():
    return Representor("other", lambda o: o.id, Other).field("title", lambda o: o.title)

class TestRepresentor(test.TestCase):

    def test_declarations(self):
        rep = model_representor()
        self.assertEqual(rep.resource_name, "model")
        self.assertIs(rep.model_class, Model)
        self.assertEqual(rep.identifier(Model(7)), 7)
        self.assertEqual([k for k, f in rep.fields()], ["name"])
        self.assertEqual(list(rep.links()), [("docs", "http://example.com/docs")])
        self.assertEqual(rep.binaries(), ("binary1",))
        self.assertEqual([l.key for l in rep.linked_models()], ["other"])
        self.assertEqual(list(rep.related_collections()), [("models", "models")])

class TestHALMessageMapper(test.TestCase):

    def setUp(self):
        self.mapper = HALMessageMapper([model_representor(), other_representor()],
                                       "http://localhost/")

    def test_urls(self):
        self.assertEqual(self.mapper.baseurl, "http://localhost")
        self.assertEqual(self.mapper.item_url("model", 1), "http://localhost/p/model/1")
        self.assertEqual(self.mapper.binary_url("model", 1, "binary1"),
                         "http://localhost/b/model/1/binary1")
        self.assertEqual(self.mapper.collection_url("models"), "http://localhost/p/models")
        self.assertEqual(self.mapper.collection_url("models", "model", 1),
                         "http://localhost/p/model/1/models")

    def test_representor_for(self):
        self.assertEqual(self.mapper.representor_for(Model(1)).resource_name, "model")
        self.assertEqual(self.mapper.representor_for(None, "other").resource_name, "other")
        self.assertIsNone(self.mapper.representor_for("a string"))
        mapper = HALMessageMapper({"other": other_representor()})
        self.assertIsNotNone(mapper.representor_for(Other(1, "x")))

    def test_map_item(self):
        data = self.mapper.map_result(Model(1, "first", other_id=10))
        self.assertEqual(data["name"], "first")
        self.assertNotIn("_embedded", data)
        links = data["_links"]
        self.assertEqual(list(links.keys()), ["self", "docs", "binary1", "other", "models"])
        self.assertEqual(links["self"], {"href": "http://localhost/p/model/1"})
        self.assertEqual(links["docs"], {"href": "http://example.com/docs"})
        self.assertEqual(links["binary1"], {"href": "http://localhost/b/model/1/binary1"})
        self.assertEqual(links["other"], {"href": "http://localhost/p/other/10"})
        self.assertEqual(links["models"], {"href": "http://localhost/p/model/1/models"})

    def test_escaped_ids(self):
        data = self.mapper.map_result(Model("a b/c?d", other_id="x#1"))
        links = data["_links"]
        self.assertEqual(links["self"], {"href": "http://localhost/p/model/a%20b%2Fc%3Fd"})
        self.assertEqual(links["binary1"], {"href": "http://localhost/b/model/a%20b%2Fc%3Fd/binary1"})
        self.assertEqual(links["other"], {"href": "http://localhost/p/other/x%231"})
        self.assertEqual(links["models"], {"href": "http://localhost/p/model/a%20b%2Fc%3Fd/models"})

        page = Page.of(Nested("model", "models"), [], Pagination(1, 5), "a/b")
        self.assertEqual(self.mapper.map_result(page)["_links"]["self"],
                         {"href": "http://localhost/p/model/a%2Fb/models?page=1&per_page=5"})

    def test_missing_values(self):
        data = self.mapper.map_result(Model(2))
        self.assertNotIn("name", data)
        self.assertNotIn("other", data["_links"])

    def test_embedded(self):
        rep = Representor("model", lambda m: m.id, Model) \
                  .linked_model("other", "other", lambda m: m.other_id, lambda m: m.other)
        mapper = HALMessageMapper([rep, other_representor()], "http://localhost")
        data = mapper.map_result(Model(1, other_id=10, other=Other(10, "ten")))
        self.assertNotIn("other", data["_links"])
        self.assertEqual(data["_embedded"]["other"]["title"], "ten")
        self.assertEqual(data["_embedded"]["other"]["_links"]["self"],
                         {"href": "http://localhost/p/other/10"})

        # falls back to a link when there is nothing to embed
        data = mapper.map_result(Model(1, other_id=10))
        self.assertNotIn("_embedded", data)
        self.assertEqual(data["_links"]["other"], {"href": "http://localhost/p/other/10"})

    def test_map_page(self):
        models = [Model(i, "m%d" % i) for i in range(1, 26)]
        page = Page.of(Paged("model"), models, Pagination(2, 10))
        data = self.mapper.map_result(page)
        self.assertEqual(data["total"], 25)
        self.assertEqual(data["count"], 10)
        items = data["_embedded"]["model"]
        self.assertEqual(len(items), 10)
        self.assertEqual(items[0]["name"], "m11")
        self.assertEqual(items[0]["_links"]["self"], {"href": "http://localhost/p/model/11"})

        links = data["_links"]
        base = "http://localhost/p/model?page=%d&per_page=10"
        self.assertEqual(links["self"], {"href": base % 2})
        self.assertEqual(links["first"], {"href": base % 1})
        self.assertEqual(links["last"], {"href": base % 3})
        self.assertEqual(links["prev"], {"href": base % 1})
        self.assertEqual(links["next"], {"href": base % 3})

    def test_map_single_page(self):
        page = Page.of(Paged("model"), [Model(1)], Pagination())
        data = self.mapper.map_page(page)
        self.assertNotIn("prev", data["_links"])
        self.assertNotIn("next", data["_links"])
        self.assertEqual(data["count"], 1)

    def test_map_nested_page(self):
        page = Page.of(Nested("model", "models"), [Model(2)], Pagination(), parent_id=1)
        data = self.mapper.map_page(page)
        self.assertEqual(data["_links"]["self"],
                         {"href": "http://localhost/p/model/1/models?page=1&per_page=30"})
        self.assertEqual(data["_embedded"]["models"][0]["_links"]["self"],
                         {"href": "http://localhost/p/model/2"})

    def test_entry_points(self):
        data = self.mapper.map_entry_points(["model", "other"])
        self.assertEqual(data["_links"]["self"], {"href": "http://localhost/"})
        self.assertEqual(data["_links"]["model"], {"href": "http://localhost/p/model"})
        self.assertEqual(data["_links"]["other"], {"href": "http://localhost/p/other"})

    def test_passthrough(self):
        self.assertEqual(self.mapper.map_result(42), 42)
        self.assertIsNone(self.mapper.map_result(None))
        self.assertEqual(self.mapper.map_result({"a": 1}), {"a": 1})
        self.assertEqual(self.mapper.map_result(["a"]), ["a"])
        obj = object()
        self.assertIs(self.mapper.map_result(obj), obj)
        self.assertEqual(HAL_CONTENT_TYPE, "application/hal+json")


if __name__ == '__main__':
    test.main()
