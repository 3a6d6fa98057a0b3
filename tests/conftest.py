"""Shared fixtures for voicecast tests."""

import io
import threading

import pytest
from botocore.exceptions import ClientError
from pydub import AudioSegment
from pydub.generators import Sine

from voicecast.config import Settings
from voicecast.constants import PCM_SAMPLE_RATE, SEGMENT_EXTENSIONS
from voicecast.pipeline import Pipeline
from voicecast.storage import ObjectStore
from voicecast.tts import SpeechSynthesizer


def _client_error(code, message, operation):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def _pcm(duration_ms=200, tone=False):
    """Raw 16-bit mono PCM, the way Polly delivers OutputFormat=pcm."""
    if tone:
        audio = Sine(440, sample_rate=PCM_SAMPLE_RATE).to_audio_segment(duration=duration_ms, volume=-6)
    else:
        audio = AudioSegment.silent(duration=duration_ms, frame_rate=PCM_SAMPLE_RATE)
    return audio.set_channels(1).set_sample_width(2).raw_data


class FakeS3:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self, page_size=1000):
        self.objects = {}       # (bucket, key) -> bytes
        self.page_size = page_size
        self.calls = []         # operation names in call order
        self.gets = []          # keys fetched in order
        self.fail_on = {}       # operation name -> exception to raise
        self.fail_keys = {}     # key -> exception raised by get_object

    def _record(self, operation):
        self.calls.append(operation)
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def keys(self, bucket):
        return sorted(k for b, k in self.objects if b == bucket)

    def get_object(self, Bucket, Key):
        self._record("get_object")
        self.gets.append(Key)
        if Key in self.fail_keys:
            raise self.fail_keys[Key]
        if (Bucket, Key) not in self.objects:
            raise _client_error("NoSuchKey", "The specified key does not exist.", "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, **kwargs):
        self._record("put_object")
        self.objects[(Bucket, Key)] = bytes(Body)
        return {}

    def list_objects_v2(self, Bucket, Prefix="", ContinuationToken=None, **kwargs):
        self._record("list_objects_v2")
        keys = [k for k in self.keys(Bucket) if k.startswith(Prefix)]
        start = int(ContinuationToken or 0)
        page = keys[start:start + self.page_size]
        truncated = start + self.page_size < len(keys)
        response = {"IsTruncated": truncated, "KeyCount": len(page)}
        if page:
            response["Contents"] = [{"Key": k} for k in page]
        if truncated:
            response["NextContinuationToken"] = str(start + self.page_size)
        return response

    def get_paginator(self, operation):
        assert operation == "list_objects_v2"
        return FakeListPaginator(self)

    def delete_objects(self, Bucket, Delete):
        self._record("delete_objects")
        deleted = []
        for obj in Delete["Objects"]:
            self.objects.pop((Bucket, obj["Key"]), None)
            deleted.append({"Key": obj["Key"]})
        return {"Deleted": deleted}


class FakeListPaginator:
    """Mimics botocore's list_objects_v2 paginator over a FakeS3."""

    def __init__(self, client):
        self._client = client

    def paginate(self, Bucket, Prefix="", PaginationConfig=None):
        return FakePageIterator(self._client, Bucket, Prefix, (PaginationConfig or {}).get("MaxItems"))


class FakePageIterator:
    def __init__(self, client, bucket, prefix, max_items):
        self._client = client
        self._bucket = bucket
        self._prefix = prefix
        self._max_items = max_items
        self.resume_token = None

    def __iter__(self):
        seen = 0
        token = None
        while True:
            kwargs = {"Bucket": self._bucket, "Prefix": self._prefix}
            if token:
                kwargs["ContinuationToken"] = token
            page = self._client.list_objects_v2(**kwargs)
            contents = page.get("Contents", [])
            if self._max_items is not None and seen + len(contents) > self._max_items:
                # stop at MaxItems and leave a token to resume from
                yield {**page, "Contents": contents[:self._max_items - seen]}
                self.resume_token = f"{token or 0}:{self._max_items - seen}"
                return
            seen += len(contents)
            yield page
            if not page.get("IsTruncated"):
                return
            token = page["NextContinuationToken"]


class FakePolly:
    """Polly double. Submission n completes on its polls_needed[n]-th poll.

    On completion the task's audio (audio_for(n)) lands in the fake S3
    bucket at the OutputUri key, like the real service.
    """

    def __init__(self, s3, polls_needed=None, fail=None, audio_for=None, reject_at=None):
        self.s3 = s3
        self.polls_needed = polls_needed or {}
        self.fail = fail or {}          # submission number -> failure reason
        self.audio_for = audio_for or (lambda n: _pcm(200))
        self.reject_at = reject_at      # submission number to reject
        self.submissions = []
        self.polls = []
        self.tasks = {}
        self._lock = threading.Lock()

    def start_speech_synthesis_task(self, **kwargs):
        with self._lock:
            n = len(self.submissions)
            if self.reject_at == n:
                raise _client_error("ThrottlingException", "Rate exceeded", "StartSpeechSynthesisTask")
            self.submissions.append(kwargs)
        task_id = f"task-{n}"
        ext = SEGMENT_EXTENSIONS[kwargs["OutputFormat"]]
        bucket = kwargs["OutputS3BucketName"]
        key = f"{kwargs['OutputS3KeyPrefix']}{task_id}.{ext}"
        self.tasks[task_id] = {
            "n": n,
            "remaining": self.polls_needed.get(n, 1),
            "bucket": bucket,
            "key": key,
            "uri": f"https://s3.us-east-1.amazonaws.com/{bucket}/{key}",
        }
        return {"SynthesisTask": {"TaskId": task_id, "TaskStatus": "scheduled",
                                  "OutputUri": self.tasks[task_id]["uri"]}}

    def get_speech_synthesis_task(self, TaskId):
        self.polls.append(TaskId)
        task = self.tasks[TaskId]
        task["remaining"] -= 1
        body = {"TaskId": TaskId, "OutputUri": task["uri"]}
        if task["remaining"] > 0:
            body["TaskStatus"] = "inProgress"
        elif task["n"] in self.fail:
            body["TaskStatus"] = "failed"
            body["TaskStatusReason"] = self.fail[task["n"]]
        else:
            self.s3.objects[(task["bucket"], task["key"])] = self.audio_for(task["n"])
            body["TaskStatus"] = "completed"
        return {"SynthesisTask": body}


class FakeClock:
    """Monotonic clock that only moves when the pipeline sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def pcm():
    """Factory for raw PCM segment bytes: pcm(duration_ms, tone=False)."""
    return _pcm


@pytest.fixture
def client_error():
    return _client_error


@pytest.fixture
def tiny_mp3(tmp_path):
    """Generate a 100ms silent MP3 for testing."""
    path = tmp_path / "test.mp3"
    silence = AudioSegment.silent(duration=100)
    silence.export(str(path), format="mp3")
    return path


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def fake_polly(fake_s3):
    return FakePolly(fake_s3)


@pytest.fixture
def polly_factory(fake_s3):
    """Build a FakePolly over the shared fake S3 with custom behaviour."""
    return lambda **kwargs: FakePolly(fake_s3, **kwargs)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        input_bucket="scripts",
        output_bucket="voices",
        work_dir=str(tmp_path / "work"),
        output_format="pcm",
    )


@pytest.fixture
def make_pipeline(fake_s3, fake_clock):
    """Build a Pipeline over the fakes; pass a FakePolly and optionally settings."""
    def factory(polly, settings):
        return Pipeline(
            settings,
            ObjectStore(client=fake_s3),
            SpeechSynthesizer(client=polly),
            sleep=fake_clock.sleep,
            clock=fake_clock,
        )
    return factory
