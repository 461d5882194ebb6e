"""
Tests for the HTTP and Socket.IO surface, with the face model mocked out.
"""

import base64
import io

import cv2
import numpy as np
import pytest
from unittest.mock import patch

from conftest import make_detector, make_face, random_embedding
from app import app, init_services, socketio
from services.call_notifier import CallNotifier

REFERENCE = random_embedding(seed=42)


def _jpeg(shape=(120, 160, 3)):
    ok, buf = cv2.imencode('.jpg', np.zeros(shape, dtype=np.uint8))
    assert ok
    return buf.tobytes()


def _b64_frame():
    return base64.b64encode(_jpeg()).decode()


@pytest.fixture
def detector():
    return make_detector([make_face(REFERENCE, box=(20, 20, 80, 80))])


@pytest.fixture
def client(detector):
    app.config['TESTING'] = True
    notifier = CallNotifier('http://localhost:3000/call-owner', '+15550100',
                            development_mode=True)
    init_services(detector=detector, notifier=notifier)
    with app.test_client() as client:
        yield client
    app.recognition_session.tracker.reset()


def _ready(client):
    client.post('/api/session/name', json={'name': 'Alice'})
    client.post('/api/session/reference',
                data={'photo': (io.BytesIO(_jpeg()), 'me.jpg', 'image/jpeg')},
                content_type='multipart/form-data')
    return client.post('/api/session/start')


class TestInfo:
    def test_api_root(self, client):
        assert client.get('/api').get_json()['status'] == 'online'

    def test_client_config(self, client):
        body = client.get('/api/config').get_json()
        assert body['recognition_interval_ms'] == 100
        assert body['min_name_length'] == 2
        assert body['box_colors']['unknown'] == '#eab308'

    def test_health(self, client):
        body = client.get('/health').get_json()
        assert body['status'] == 'healthy'
        assert body['models_loaded'] is True

    def test_unknown_route(self, client):
        assert client.get('/nope').status_code == 404


class TestSessionApi:
    def test_name_validation(self, client):
        body = client.post('/api/session/name', json={'name': ' A '}).get_json()
        assert body == {'name': 'A', 'valid': False,
                        'button': {'label': 'Enter Your Name', 'enabled': False}}
        assert client.post('/api/session/name', json={}).status_code == 400

    def test_reference_requires_name(self, client):
        client.post('/api/session/name', json={'name': ''})
        res = client.post('/api/session/reference', json={'image': _b64_frame()})
        assert res.status_code == 409

    def test_reference_upload_multipart(self, client):
        client.post('/api/session/name', json={'name': 'Alice'})
        res = client.post('/api/session/reference',
                          data={'photo': (io.BytesIO(_jpeg()), 'me.jpg', 'image/jpeg')},
                          content_type='multipart/form-data')
        assert res.status_code == 200
        body = res.get_json()
        assert body['button'] == {'label': 'Start Recognition', 'enabled': True}
        assert body['stats']['total_scans'] == 0

    def test_reference_upload_data_url(self, client):
        client.post('/api/session/name', json={'name': 'Alice'})
        res = client.post('/api/session/reference',
                          json={'image': 'data:image/jpeg;base64,' + _b64_frame()})
        assert res.status_code == 200

    def test_reference_undecodable(self, client):
        client.post('/api/session/name', json={'name': 'Alice'})
        res = client.post('/api/session/reference',
                          data={'photo': (io.BytesIO(b'garbage'), 'me.jpg', 'image/jpeg')},
                          content_type='multipart/form-data')
        assert res.status_code == 400

    def test_reference_without_face(self, client, detector):
        detector.detect_single.return_value = None
        client.post('/api/session/name', json={'name': 'Alice'})
        res = client.post('/api/session/reference', json={'image': _b64_frame()})
        assert res.status_code == 422
        assert 'No face' in res.get_json()['error']

    def test_start_without_reference(self, client):
        client.post('/api/session/name', json={'name': 'Alice'})
        res = client.post('/api/session/start')
        assert res.status_code == 409

    def test_start_and_stop(self, client):
        res = _ready(client)
        assert res.status_code == 200
        assert res.get_json()['button']['label'] == 'Recognition Active'
        status = client.get('/api/session/status').get_json()
        assert status['recognizing'] is True

        body = client.post('/api/session/stop').get_json()
        assert body['recognizing'] is False

    def test_rest_frame(self, client, detector):
        _ready(client)
        detector.detect.return_value = [
            make_face(REFERENCE, box=(10, 10, 50, 50)),
            make_face(random_embedding(seed=3), box=(80, 10, 120, 50)),
        ]
        res = client.post('/api/session/frame', json={'frame': _b64_frame()})
        body = res.get_json()
        assert res.status_code == 200
        assert [f['label'] for f in body['faces']] == ['Match: Alice', 'Unknown Person']
        assert body['frame_size'] == {'width': 160, 'height': 120}
        assert body['stats']['accuracy'] == '50.0'

    def test_rest_frame_requires_running(self, client):
        res = client.post('/api/session/frame', json={'frame': _b64_frame()})
        assert res.status_code == 409

    def test_rest_frame_bad_payload(self, client):
        assert client.post('/api/session/frame', json={}).status_code == 400

    @pytest.mark.parametrize('frame', [123, ['abc'], {'a': 1}])
    def test_rest_frame_non_string(self, client, frame):
        res = client.post('/api/session/frame', json={'frame': frame})
        assert res.status_code == 400
        assert res.get_json()['error'] == 'No frame data'


class TestStatsApi:
    def test_stats_and_reset(self, client, detector):
        _ready(client)
        detector.detect.return_value = [make_face(REFERENCE)]
        client.post('/api/session/frame', json={'frame': _b64_frame()})

        body = client.get('/api/stats/').get_json()
        assert body['stats']['match_count'] == 1

        body = client.post('/api/stats/reset').get_json()
        assert body['stats']['total_scans'] == 0


class TestCamerasApi:
    def test_lists_cameras(self, client):
        cams = [{'index': 0, 'label': 'Camera 1'}]
        with patch('api.cameras.list_cameras', return_value=cams):
            body = client.get('/api/cameras/').get_json()
        assert body == {'cameras': cams, 'selected': 0}

    def test_no_cameras(self, client):
        with patch('api.cameras.list_cameras', return_value=[]):
            body = client.get('/api/cameras/').get_json()
        assert body['selected'] is None


class TestAlertsApi:
    def test_manual_test_call(self, client):
        body = client.post('/api/alerts/test').get_json()
        assert body['ok'] is True
        assert body['result']['reason'] == 'manual_test'

    def test_tracker_state(self, client):
        body = client.get('/api/alerts/tracker').get_json()
        assert body['tracker']['threshold'] == 5
        assert body['notifier']['development_mode'] is True


class TestStreamNamespace:
    def test_frame_round_trip(self, client, detector):
        _ready(client)
        detector.detect.return_value = [make_face(REFERENCE, box=(10, 10, 50, 50))]

        sio = socketio.test_client(app, namespace='/stream')
        sio.get_received('/stream')   # drop the connect status
        sio.emit('frame', {'frame': _b64_frame(), 'display_width': 320,
                           'display_height': 240}, namespace='/stream')
        received = sio.get_received('/stream')
        sio.disconnect(namespace='/stream')

        detections = [m for m in received if m['name'] == 'detection']
        assert len(detections) == 1
        payload = detections[0]['args'][0]
        assert payload['faces'][0]['label'] == 'Match: Alice'
        assert payload['faces'][0]['box']['left'] == 20
        assert payload['display_size'] == {'width': 320, 'height': 240}

    def test_non_string_frame_dropped(self, client):
        sio = socketio.test_client(app, namespace='/stream')
        sio.get_received('/stream')
        sio.emit('frame', {'frame': 123}, namespace='/stream')
        received = sio.get_received('/stream')
        assert sio.is_connected('/stream')
        sio.disconnect(namespace='/stream')
        assert not [m for m in received if m['name'] in ('detection', 'error')]

    def test_ignored_when_not_running(self, client):
        sio = socketio.test_client(app, namespace='/stream')
        sio.get_received('/stream')
        sio.emit('frame', {'frame': _b64_frame()}, namespace='/stream')
        received = sio.get_received('/stream')
        sio.disconnect(namespace='/stream')
        assert not [m for m in received if m['name'] == 'detection']
