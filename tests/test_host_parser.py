import unittest

from app.services.host_parser import parse_host, platform_root_host, split_host


class TestParseHost(unittest.TestCase):

    def test_institute_subdomain(self):
        self.assertEqual(parse_host("acme.platform.test"), "acme")
        self.assertEqual(parse_host("acme.platform.test:8443"), "acme")

    def test_label_is_lowercased(self):
        self.assertEqual(parse_host("ACME.Platform.Test"), "acme")

    def test_bare_platform_domain(self):
        self.assertIsNone(parse_host("platform.test"))
        self.assertIsNone(parse_host("platform.test:3000"))

    def test_localhost(self):
        self.assertIsNone(parse_host("localhost"))
        self.assertIsNone(parse_host("localhost:3000"))
        self.assertIsNone(parse_host("127.0.0.1:8000"))

    def test_localhost_subdomain(self):
        self.assertEqual(parse_host("school.localhost:3000"), "school")

    def test_leftmost_label_wins(self):
        self.assertEqual(parse_host("acme.eu.platform.test"), "acme")

    def test_reserved_labels_are_reported(self):
        self.assertEqual(parse_host("www.platform.test"), "www")

    def test_malformed_hosts(self):
        for host in ("", None, "   ", "[::1]:8000", "::1", "10.0.0.7", "..", "acme..platform.test",
                     "-bad.platform.test", "ac_me.platform.test"):
            with self.subTest(host=host):
                self.assertIsNone(parse_host(host))

    def test_configured_platform_domain(self):
        self.assertIsNone(parse_host("platform.co.uk", platform_domain="platform.co.uk"))
        self.assertEqual(parse_host("acme.platform.co.uk", platform_domain="platform.co.uk"), "acme")

    def test_split_host(self):
        self.assertEqual(split_host("Acme.Platform.Test:80"), ("acme.platform.test", "80"))
        self.assertEqual(split_host("[::1]:80"), ("", ""))


class TestPlatformRootHost(unittest.TestCase):

    def test_strips_institute_label(self):
        self.assertEqual(platform_root_host("www.platform.test"), "platform.test")
        self.assertEqual(platform_root_host("acme.platform.test:8080"), "platform.test:8080")

    def test_localhost(self):
        self.assertEqual(platform_root_host("acme.localhost:3000"), "localhost:3000")
        self.assertEqual(platform_root_host(""), "localhost")

    def test_configured_domain(self):
        self.assertEqual(
            platform_root_host("acme.platform.co.uk:8000", platform_domain="platform.co.uk"),
            "platform.co.uk:8000",
        )


if __name__ == '__main__':
    unittest.main()
