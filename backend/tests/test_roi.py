import pytest

from core.errors import InvalidGeometryError
from services.roi import (
    calculate_geometry_area_km2,
    check_analysis_roi,
    check_geometry_area_is_less_than_threshold,
    describe_roi,
    generate_roi_recommendations,
    geometry_to_bbox,
    get_geometry_center,
    get_geometry_corners,
    get_roi_validation_error,
    haversine_distance,
    is_valid_roi_geometry,
    roi_to_shape,
)

pytestmark = pytest.mark.unit


def _square(lng, lat, size):
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lng, lat],
                [lng + size, lat],
                [lng + size, lat + size],
                [lng, lat + size],
                [lng, lat],
            ]
        ],
    }


class TestValidation:
    def test_polygon_is_valid(self, manhattan_roi):
        assert is_valid_roi_geometry(manhattan_roi)
        assert get_roi_validation_error(manhattan_roi) is None

    @pytest.mark.parametrize(
        "roi, message",
        [
            (None, "ROI is null or undefined"),
            ("polygon", "ROI is not an object"),
            ({"coordinates": []}, "ROI missing 'type' property"),
            (
                {"type": "Point", "coordinates": [0, 0]},
                "Invalid ROI type 'Point'. Must be one of: Polygon, MultiPolygon, FeatureCollection",
            ),
            ({"type": "Polygon", "coordinates": []}, "ROI coordinates array is empty"),
            ({"type": "FeatureCollection", "features": []}, "FeatureCollection has no features"),
            ({"type": "FeatureCollection", "features": [{}]}, "Feature 0 missing geometry"),
        ],
    )
    def test_validation_messages(self, roi, message):
        assert get_roi_validation_error(roi) == message

    def test_feature_collection_of_polygons(self, manhattan_roi):
        roi = {
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": manhattan_roi, "properties": {}}],
        }
        assert is_valid_roi_geometry(roi)
        assert check_analysis_roi(roi) is None

    def test_recommendations_depend_on_validity(self, manhattan_roi):
        assert generate_roi_recommendations(None)[0] == (
            "Draw a region on the map before requesting analysis"
        )
        assert len(generate_roi_recommendations({"type": "Point"})) == 3
        assert generate_roi_recommendations(manhattan_roi)[0] == (
            "ROI appears valid - analysis should work"
        )


class TestAnalysisChecks:
    def test_missing_roi(self):
        assert "didn't provide a valid region of interest" in check_analysis_roi(None)

    def test_wrong_type(self):
        assert check_analysis_roi({"type": "LineString", "coordinates": [[0, 0], [1, 1]]}) == (
            "Selected ROI geometry must be a Polygon, MultiPolygon, or a FeatureCollection "
            "of polygons."
        )

    def test_feature_collection_with_point(self):
        roi = {
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}}],
        }
        assert check_analysis_roi(roi) == "All features in the ROI must be polygons."

    def test_feature_with_string_geometry(self):
        roi = {"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": "oops"}]}
        assert check_analysis_roi(roi) == "All features in the ROI must be polygons."
        assert get_roi_validation_error(roi) == "Feature 0 missing geometry"


class TestDescribeRoi:
    def test_reports_valid_polygon(self, manhattan_roi):
        report = describe_roi(manhattan_roi)
        assert report["roiStatus"]["exists"] is True
        assert report["roiStatus"]["type"] == "object"
        assert report["geometryDetails"]["type"] == "Polygon"
        assert report["geometryDetails"]["firstCoordinate"] == -73.9857
        assert report["validation"] == {"isValidGeometry": True, "errorMessage": None}

    def test_reports_missing_field(self):
        report = describe_roi(None, present=False)
        assert report["roiStatus"]["isUndefined"] is True
        assert report["roiStatus"]["type"] == "undefined"
        assert report["geometryDetails"] is None
        assert report["validation"]["errorMessage"] == "ROI is null or undefined"


class TestGeometry:
    def test_area_of_one_degree_square_at_equator(self):
        # A 1x1 degree cell at the equator is roughly 12,300 km²
        area = calculate_geometry_area_km2(_square(0, 0, 1))
        assert 12000 < area < 12500

    def test_area_threshold(self, manhattan_roi):
        assert check_geometry_area_is_less_than_threshold(manhattan_roi, 100)
        assert not check_geometry_area_is_less_than_threshold(_square(0, 0, 1), 100)

    def test_feature_collection_is_unioned(self):
        roi = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": _square(0, 0, 1)},
                {"type": "Feature", "geometry": _square(0.5, 0, 1)},
            ],
        }
        assert roi_to_shape(roi).bounds == (0.0, 0.0, 1.5, 1.0)

    def test_empty_feature_collection_is_rejected(self):
        with pytest.raises(InvalidGeometryError):
            roi_to_shape({"type": "FeatureCollection", "features": []})

    def test_center_bbox_and_corners(self):
        roi = _square(10, 20, 2)
        lat, lng = get_geometry_center(roi)
        # The closing vertex repeats the first one and is counted in the mean
        assert lat == pytest.approx((20 + 20 + 22 + 22 + 20) / 5)
        assert lng == pytest.approx((10 + 12 + 12 + 10 + 10) / 5)
        assert geometry_to_bbox(roi) == (20, 10, 22, 12)
        assert get_geometry_corners(roi) == [
            {"lat": 20, "lng": 10},
            {"lat": 22, "lng": 10},
            {"lat": 22, "lng": 12},
            {"lat": 20, "lng": 12},
        ]

    def test_haversine_distance(self):
        # One degree of latitude is about 111 km
        assert haversine_distance(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)
        assert haversine_distance(51.5, -0.1, 51.5, -0.1) == 0
