import os, sys, pdb, json, logging, tempfile, time
import unittest as test

import jwt

from hyperaction.web import rest
from hyperaction.web.rest.base import make_agent_from_claimset, Unauthenticated
from hyperaction.web.formats import JSONSupport
from hyperaction.agent import Agent
from hyperaction.exceptions import ConfigurationException

SECRET = "a-shared-secret-of-sufficient-length-0123456789"

tmpdir = tempfile.TemporaryDirectory(prefix="_test_rest_base.")
loghdlr = None
rootlog = None
def setUpModule():
    global loghdlr
    global rootlog
    rootlog = logging.getLogger()
    loghdlr = logging.FileHandler(os.path.join(tmpdir.name,"test_rest.log"))
    loghdlr.setLevel(logging.DEBUG)
    rootlog.addHandler(loghdlr)

def tearDownModule():
    global loghdlr
    if loghdlr:
        if rootlog:
            rootlog.removeHandler(loghdlr)
            loghdlr.flush()
            loghdlr.close()
        loghdlr = None
    tmpdir.cleanup()

class EchoHandler(rest.Handler):

    def __init__(self, path, wsgienv, start_resp, who=None, config=None, log=None, app=None):
        super(EchoHandler, self).__init__(path, wsgienv, start_resp, who, config, log, app)
        self._set_default_format_support(JSONSupport())
        self._set_format_qp("format")

    def do_GET(self, path, ashead=False):
        fmt = self.select_format()
        return self.send_json({"path": path, "who": self.who.id, "format": fmt.name},
                              ashead=ashead)

    def do_PUT(self, path):
        raise RuntimeError("oops")

class EchoApp(rest.ServiceApp):

    def create_handler(self, env, start_resp, path, who):
        return EchoHandler(path, env, start_resp, who, self.cfg, self.log, self)

class TestHandler(test.TestCase):

    def start(self, status, headers=None, extup=None):
        self.resp.append(status)
        for head in headers:
            self.resp.append("{0}: {1}".format(head[0], head[1]))

    def tostr(self, resplist):
        return [e.decode() for e in resplist]

    def setUp(self):
        self.resp = []
        self.app = EchoApp("echo", rootlog, {"include_headers": {"X-Service": "echo"}})

    def test_get(self):
        req = { 'REQUEST_METHOD': 'GET', 'PATH_INFO': 'a/b' }
        body = self.app(req, self.start)
        self.assertEqual(self.resp[0], "200 OK")
        self.assertIn("X-Service: echo", self.resp)
        self.assertIn("Content-Type: application/json", self.resp)
        data = json.loads("".join(self.tostr(body)))
        self.assertEqual(data["path"], "a/b")
        self.assertEqual(data["who"], "echo/anonymous")
        self.assertEqual(data["format"], "json")

    def test_head(self):
        req = { 'REQUEST_METHOD': 'HEAD', 'PATH_INFO': 'a' }
        body = self.app(req, self.start)
        self.assertEqual(self.resp[0], "200 OK")
        self.assertEqual(body, [])
        self.assertTrue(any(h.startswith("Content-Length:") for h in self.resp))

    def test_not_allowed(self):
        req = { 'REQUEST_METHOD': 'POST', 'PATH_INFO': 'a' }
        self.app(req, self.start)
        self.assertTrue(self.resp[0].startswith("405 "))

    def test_unexpected_failure(self):
        req = { 'REQUEST_METHOD': 'PUT', 'PATH_INFO': 'a' }
        self.app(req, self.start)
        self.assertEqual(self.resp[0], "500 Server failure")

    def test_format_failure(self):
        req = { 'REQUEST_METHOD': 'GET', 'PATH_INFO': 'a', 'QUERY_STRING': 'format=xml' }
        self.app(req, self.start)
        self.assertEqual(self.resp[0], "500 Server failure")

    def test_not_supported(self):
        req = { 'REQUEST_METHOD': 'DELETE', 'PATH_INFO': 'a' }
        self.app(req, self.start)
        self.assertEqual(self.resp[0], "405 DELETE not supported on this resource")

        self.resp = []
        req = { 'REQUEST_METHOD': 'POST', 'PATH_INFO': 'a',
                'HTTP_X_HTTP_METHOD_OVERRIDE': 'GET' }
        self.app(req, self.start)
        self.assertEqual(self.resp[0], "200 OK")

    def test_send_ok(self):
        hdlr = rest.Handler("a", { 'REQUEST_METHOD': 'GET' }, self.start)
        body = hdlr.send_ok("hello")
        self.assertEqual(self.resp[0], "200 OK")
        self.assertIn("Content-Type: text/plain", self.resp)
        self.assertIn("Content-Length: 5", self.resp)
        self.assertEqual(body, [b"hello"])

        with self.assertRaises(TypeError):
            hdlr.send_ok({"a": 1})

    def test_bad_include_headers(self):
        with self.assertRaises(ConfigurationException):
            EchoApp("echo", rootlog, {"include_headers": "X-Goob"})
        app = EchoApp("echo", rootlog, {"include_headers": [["X-Goob", "gurn"]]})
        self.assertEqual(app.include_headers.get("X-Goob"), "gurn")

class TestWSGIServiceApp(test.TestCase):

    def start(self, status, headers=None, extup=None):
        self.resp.append(status)
        for head in headers:
            self.resp.append("{0}: {1}".format(head[0], head[1]))

    def setUp(self):
        self.resp = []
        self.svcapp = EchoApp("echo", rootlog)
        self.config = { "authentication": { "type": "jwt", "key": SECRET } }
        self.app = rest.WSGIServiceApp(self.svcapp, rootlog, "/api/v1", self.config)

    def test_base_ep(self):
        self.assertEqual(self.app.base_ep, "/api/v1/")
        self.assertEqual(self.app.name, "echo")

        body = self.app({ 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api/v1/a/b' }, self.start)
        self.assertEqual(self.resp[0], "200 OK")
        self.assertEqual(json.loads(body[0])["path"], "a/b")

        self.resp = []
        body = self.app({ 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api/v1' }, self.start)
        self.assertEqual(self.resp[0], "200 OK")
        self.assertEqual(json.loads(body[0])["path"], "")

        self.resp = []
        self.app({ 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api' }, self.start)
        self.assertEqual(self.resp[0], "403 Forbidden")

        self.resp = []
        self.app({ 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/goob/a' }, self.start)
        self.assertEqual(self.resp[0], "404 Not Found")

    def test_authenticated(self):
        token = jwt.encode({"sub": "tom", "exp": int(time.time()) + 600}, SECRET,
                           algorithm="HS256")
        req = { 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api/v1/a',
                'HTTP_AUTHORIZATION': "Bearer "+token }
        body = self.app(req, self.start)
        self.assertEqual(self.resp[0], "200 OK")
        self.assertEqual(json.loads(body[0])["who"], "echo/tom")

    def test_raise_on_invalid(self):
        self.config['authentication']['raise_on_invalid'] = True
        req = { 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api/v1/a',
                'HTTP_AUTHORIZATION': "Bearer goober" }
        self.app(req, self.start)
        self.assertEqual(self.resp[0], "401 Authentication Failure")

    def test_allowed_clients(self):
        self.config['authentication']['allowed_clients'] = ["ui"]
        who = self.app.authenticate({ 'HTTP_X_CLIENT_ID': "robot" })
        self.assertEqual(who.agent_class, Agent.INVALID)
        self.assertEqual(who.delegated, ("robot",))

        who = self.app.authenticate({ 'HTTP_X_CLIENT_ID': "ui", 'HTTP_X_CLIENT_AGENTS': "web ui" })
        self.assertEqual(who.agent_class, Agent.PUBLIC)
        self.assertTrue(who.is_anonymous())
        self.assertEqual(who.delegated, ("web", "ui"))

        self.config['authentication']['raise_on_invalid'] = True
        with self.assertRaises(Unauthenticated):
            self.app.authenticate({ 'HTTP_X_CLIENT_ID': "robot" })

    def test_no_jwt(self):
        app = rest.WSGIServiceApp(self.svcapp, rootlog, config={})
        self.assertIsNone(app.base_ep)
        who = app.authenticate({})
        self.assertTrue(who.is_anonymous())
        self.assertEqual(who.vehicle, "echo")

        app = rest.WSGIServiceApp(self.svcapp, rootlog,
                                  config={"authentication": {"raise_on_anonymous": True}})
        with self.assertRaises(Unauthenticated):
            app.authenticate({})

        app = rest.WSGIServiceApp(self.svcapp, rootlog,
                                  config={"authentication": {"type": "kerberos"}})
        with self.assertRaises(ConfigurationException):
            app.authenticate({})

class TestAuthFuncs(test.TestCase):

    def test_make_agent_from_claimset(self):
        info = {"sub": "tom"}
        who = make_agent_from_claimset("library", info, rootlog, ["ui"])
        self.assertEqual(who.vehicle, "library")
        self.assertEqual(who.actor, "tom")
        self.assertEqual(who.actor_type, Agent.USER)
        self.assertEqual(who.agent_class, "public")
        self.assertEqual(who.delegated, ("ui",))

        info = {"subject": "tom"}
        who = make_agent_from_claimset("library", info, rootlog)
        self.assertEqual(who.actor, "anonymous")
        self.assertTrue(who.is_anonymous())

        info = {"sub": "tom", "agent_class": "staff", "groups": ["editors", "readers"],
                "email": "tom@example.com"}
        who = make_agent_from_claimset("library", info, rootlog)
        self.assertEqual(who.agent_class, "staff")
        self.assertEqual(who.groups, ("staff", "editors", "readers"))
        self.assertEqual(who.get_prop("email"), "tom@example.com")
        self.assertIsNone(who.get_prop("groups"))

        who = make_agent_from_claimset("library", {"sub": "tom", "groups": "a b"}, rootlog)
        self.assertEqual(who.groups, ("public", "a", "b"))

    def test_authenticate_via_jwt(self):
        config = { "key": SECRET, "algorithm": "HS256", "require_expiration": False,
                   'raise_on_anonymous': True, 'raise_on_invalid': True }
        req = { 'REQUEST_METHOD': 'GET', 'PATH_INFO': '/api/people' }

        with self.assertRaises(Unauthenticated):
            rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")

        del config['raise_on_anonymous']
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertEqual(who.agent_class, "public")
        self.assertEqual(who.actor, "anonymous")
        self.assertEqual(who.delegated, ('ui',))

        req['HTTP_AUTHORIZATION'] = "Bearer goober"
        with self.assertRaises(Unauthenticated):
            rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")

        config['raise_on_invalid'] = False
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertEqual(who.agent_class, "invalid")
        self.assertEqual(who.actor, "anonymous")
        self.assertIsNotNone(who.get_prop("invalid_reason"))

        token = jwt.encode({"sub": "tom", "ou": "61"}, config['key'], algorithm="HS256")
        req['HTTP_AUTHORIZATION'] = "Bearer "+token
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertEqual(who.actor, "tom")
        self.assertEqual(who.vehicle, "library")
        self.assertEqual(who.get_prop("ou"), "61")

        # expiration is required by default
        del config['require_expiration']
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertEqual(who.agent_class, "invalid")

        token = jwt.encode({"sub": "tom", "exp": int(time.time()) + 600}, config['key'],
                           algorithm="HS256")
        req['HTTP_AUTHORIZATION'] = "Bearer "+token
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertEqual(who.actor, "tom")
        self.assertTrue(who.is_valid())

        # expired
        token = jwt.encode({"sub": "tom", "exp": int(time.time()) - 600}, config['key'],
                           algorithm="HS256")
        req['HTTP_AUTHORIZATION'] = "Bearer "+token
        who = rest.authenticate_via_jwt("library", req, config, rootlog, ['ui'], "webapp")
        self.assertFalse(who.is_valid())


if __name__ == '__main__':
    test.main()
