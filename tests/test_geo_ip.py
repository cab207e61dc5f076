import unittest

import requests

from envsnapshot.data_sources import geo_ip
from envsnapshot.domain import LocationSource
from test_open_meteo_client import DummyResp, RecordingSession


class TestGeoIpParsers(unittest.TestCase):
    def test_geojs_parses_string_coordinates(self):
        loc = geo_ip.parse_geojs({"latitude": "40.7128", "longitude": "-74.0060", "city": "New York",
                                  "region": "New York", "country": "United States"})
        self.assertAlmostEqual(loc.latitude, 40.7128)
        self.assertEqual(loc.source, LocationSource.IP)

    def test_geojs_missing_longitude_is_no_result(self):
        self.assertIsNone(geo_ip.parse_geojs({"latitude": "40.7"}))

    def test_zero_coordinates_are_valid(self):
        loc = geo_ip.parse_geojs({"latitude": "0", "longitude": "0"})
        self.assertEqual((loc.latitude, loc.longitude), (0.0, 0.0))
        self.assertEqual(loc.city, "")

    def test_ipwho_failure_flag(self):
        self.assertIsNone(geo_ip.parse_ipwho({"success": False, "message": "reserved range"}))
        loc = geo_ip.parse_ipwho({"success": True, "latitude": 51.5, "longitude": -0.12, "city": "London",
                                  "region": "England", "country": "United Kingdom"})
        self.assertEqual(loc.city, "London")

    def test_ipapi_uses_country_name_and_error_flag(self):
        loc = geo_ip.parse_ipapi({"latitude": 48.85, "longitude": 2.35, "city": "Paris",
                                  "region": "Île-de-France", "country": "FR", "country_name": "France"})
        self.assertEqual(loc.country, "France")
        self.assertIsNone(geo_ip.parse_ipapi({"error": True, "reason": "RateLimited"}))


class TestGeoProvider(unittest.TestCase):
    def setUp(self):
        self._orig_session = geo_ip.session

    def tearDown(self):
        geo_ip.session = self._orig_session

    def test_provider_fetches_and_parses(self):
        fake = RecordingSession(DummyResp({"latitude": "1.5", "longitude": "2.5"}))
        geo_ip.session = fake
        provider = geo_ip.GeoProvider("geojs", "https://example.test/geo.json", geo_ip.parse_geojs)

        loc = provider()

        self.assertEqual(loc.latitude, 1.5)
        self.assertEqual(fake.calls[0]["url"], "https://example.test/geo.json")

    def test_provider_propagates_http_errors(self):
        geo_ip.session = RecordingSession(DummyResp({}, status_code=429))
        provider = geo_ip.GeoProvider("ipapi", "https://example.test/json", geo_ip.parse_ipapi)
        with self.assertRaises(requests.HTTPError):
            provider()

    def test_default_chain_order(self):
        self.assertEqual([p.name for p in geo_ip.GEO_PROVIDERS], ["geojs", "ipwho", "ipapi"])


if __name__ == "__main__":
    unittest.main()
