"""API tests for /api/study-progress."""


def _post(client, **body):
    return client.post("/api/study-progress", json=body)


class TestGetStudyProgress:
    def test_new_user_gets_zeroed_record(self, client, user_id, lecture_id):
        resp = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["success"] is True
        progress = data["studyProgress"]
        assert progress["userId"] == user_id
        assert progress["lectureId"] == lecture_id
        for key in ("searchTabProgress", "chatTabProgress", "quizTabProgress", "flashcardTabProgress", "totalProgress"):
            assert progress[key] == 0
        assert data["activities"] == []

    def test_missing_params_returns_400(self, client, user_id):
        resp = client.get("/api/study-progress", params={"userId": user_id})
        assert resp.status_code == 400
        assert "lectureId" in resp.json()["detail"]

    def test_includes_activity_history(self, client, clock, user_id, lecture_id):
        _post(client, userId=user_id, lectureId=lecture_id, activityType="tab_visit", tabName="quiz")
        clock.advance(seconds=30)
        _post(
            client, userId=user_id, lectureId=lecture_id, activityType="time_spent",
            tabName="quiz", duration=45, metadata={"page": 2},
        )

        data = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id}).json()
        activities = data["activities"]
        assert [a["activityType"] for a in activities] == ["time_spent", "tab_visit"]
        assert activities[0]["duration"] == 45
        assert activities[0]["metadata"] == {"page": 2}
        assert activities[0]["tabName"] == "quiz"
        assert data["studyProgress"]["quizTabProgress"] == 30


class TestRecordActivity:
    def test_end_to_end_scenario(self, client, user_id, lecture_id):
        resp = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id})
        assert resp.json()["studyProgress"]["totalProgress"] == 0

        resp = _post(client, userId=user_id, lectureId=lecture_id, activityType="tab_visit", tabName="flashcard")
        assert resp.status_code == 200, resp.text
        progress = resp.json()["studyProgress"]
        assert progress["flashcardTabProgress"] == 10
        assert progress["totalProgress"] == 2.5

        resp = _post(
            client, userId=user_id, lectureId=lecture_id, activityType="interaction",
            tabName="flashcard", progressValue=0,
        )
        progress = resp.json()["studyProgress"]
        assert progress["flashcardTabProgress"] == 25
        assert progress["totalProgress"] == 6.25

    def test_scroll_is_capped(self, client, user_id, lecture_id):
        resp = _post(
            client, userId=user_id, lectureId=lecture_id, activityType="scroll",
            tabName="search", progressValue=95,
        )
        assert resp.json()["studyProgress"]["searchTabProgress"] == 60

    def test_snake_case_body_accepted(self, client, user_id, lecture_id):
        resp = client.post("/api/study-progress", json={
            "user_id": user_id, "lecture_id": lecture_id,
            "activity_type": "tab_visit", "tab_name": "chat",
        })
        assert resp.status_code == 200, resp.text
        assert resp.json()["studyProgress"]["chatTabProgress"] == 10

    def test_unknown_activity_type_is_accepted(self, client, user_id, lecture_id):
        resp = _post(client, userId=user_id, lectureId=lecture_id, activityType="highlight", tabName="chat")
        assert resp.status_code == 200
        assert resp.json()["studyProgress"]["chatTabProgress"] == 0

    def test_huge_duration_is_accepted(self, client, user_id, lecture_id):
        resp = _post(
            client, userId=user_id, lectureId=lecture_id, activityType="time_spent",
            tabName="quiz", duration=10**20,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["studyProgress"]["quizTabProgress"] == 30

        resp = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id})
        assert resp.json()["activities"][0]["duration"] == 2**31 - 1

    def test_long_unknown_labels_are_accepted(self, client, user_id, lecture_id):
        resp = _post(client, userId=user_id, lectureId=lecture_id, activityType="x" * 80, tabName="y" * 80)
        assert resp.status_code == 200, resp.text

        resp = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id})
        activity = resp.json()["activities"][0]
        assert activity["activityType"] == "x" * 50
        assert activity["tabName"] == "y" * 50

    def test_missing_fields_return_400(self, client, user_id):
        resp = _post(client, userId=user_id, activityType="tab_visit", tabName="chat")
        assert resp.status_code == 400

        resp = _post(client, userId=user_id, lectureId="lecture-x", tabName="chat")
        assert resp.status_code == 400

    def test_wrong_type_returns_422(self, client, user_id, lecture_id):
        resp = _post(
            client, userId=user_id, lectureId=lecture_id, activityType="scroll",
            tabName="search", progressValue="a lot",
        )
        assert resp.status_code == 422


class TestUserProgressList:
    def test_lists_all_lectures_for_user(self, client, clock, user_id):
        _post(client, userId=user_id, lectureId="intro", activityType="tab_visit", tabName="search")
        clock.advance(minutes=5)
        _post(client, userId=user_id, lectureId="advanced", activityType="tab_visit", tabName="search")

        resp = client.get(f"/api/study-progress/users/{user_id}")
        assert resp.status_code == 200
        lectures = [p["lectureId"] for p in resp.json()["studyProgress"]]
        assert lectures == ["advanced", "intro"]

    def test_unknown_user_has_no_records(self, client, user_id):
        resp = client.get(f"/api/study-progress/users/{user_id}")
        assert resp.json() == {"success": True, "studyProgress": []}


class TestStorageFailure:
    def test_store_failure_returns_503(self, app, client, user_id, lecture_id):
        from app.api.deps import get_progress_tracker
        from app.core.exceptions import StorageUnavailable

        class BrokenTracker:
            def get_progress(self, *args, **kwargs):
                raise StorageUnavailable("Storage unavailable during get_progress")

        app.dependency_overrides[get_progress_tracker] = lambda: BrokenTracker()
        try:
            resp = client.get("/api/study-progress", params={"userId": user_id, "lectureId": lecture_id})
        finally:
            app.dependency_overrides.pop(get_progress_tracker, None)
        assert resp.status_code == 503
        assert resp.json()["success"] is False
