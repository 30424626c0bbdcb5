import os, sys, pdb, json, logging, tempfile
import unittest as test
from urllib.parse import parse_qs
from collections import OrderedDict

from hyperaction.web.rest import jsonerr
from hyperaction.error import APIError

class PoorHandler(jsonerr.HandlerWithJSON):

    def do_GET(self, path, ashead=False):
        params = dict((k, v[-1]) for k, v in parse_qs(self._env.get('QUERY_STRING', '')).items())
        code = int(params.pop('code', 550))
        reason = params.pop('reason', "Not specified")
        message = params.pop('message', None)
        return self.send_error_obj(code, reason, message, "poor", params, ashead)

class TestErrorHandling(test.TestCase):

    def start(self, status, headers=None, extup=None):
        self.resp.append(status)
        for head in headers:
            self.resp.append("{0}: {1}".format(head[0], head[1]))

    def body2data(self, body):
        return json.loads(b"".join(body), object_pairs_hook=OrderedDict)

    def setUp(self):
        self.resp = []

    def test_send_error_obj(self):
        req = { 'REQUEST_METHOD': "GET",
                'QUERY_STRING': "code=409&reason=Conflict&message=already+there&goob=gurn" }
        body = PoorHandler("", req, self.start).handle()
        self.assertEqual(self.resp[0], "409 Conflict")
        self.assertIn("Content-Type: application/json", self.resp)
        data = self.body2data(body)
        self.assertEqual(data["http:status"], 409)
        self.assertEqual(data["http:reason"], "Conflict")
        self.assertEqual(data["api:type"], "poor")
        self.assertEqual(data["api:message"], "already there")
        self.assertEqual(data["goob"], "gurn")

    def test_default_message(self):
        req = { 'REQUEST_METHOD': "GET" }
        body = PoorHandler("", req, self.start).handle()
        self.assertEqual(self.resp[0], "550 Not specified")
        self.assertEqual(self.body2data(body)["api:message"], "Not specified")

    def test_head(self):
        req = { 'REQUEST_METHOD': "HEAD", 'QUERY_STRING': "code=404&reason=Not+Found" }
        body = PoorHandler("", req, self.start).handle()
        self.assertEqual(self.resp[0], "404 Not Found")
        self.assertEqual(body, [])

    def test_send_api_error(self):
        hdlr = PoorHandler("", { 'REQUEST_METHOD': "GET" }, self.start)
        body = hdlr.send_api_error(APIError(403, "Not permitted to access", "forbidden"))
        self.assertEqual(self.resp[0], "403 Not permitted to access")
        self.assertEqual(self.body2data(body)["api:type"], "forbidden")


if __name__ == '__main__':
    test.main()
