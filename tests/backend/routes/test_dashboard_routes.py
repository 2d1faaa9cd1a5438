def test_dashboard_stats_for_empty_roster(api_client, auth_headers) -> None:
    response = api_client.get('/api/dashboard/stats', headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        'totalStudents': 0,
        'activeCourses': 0,
        'pendingApplications': 0,
        'graduationRate': '0.0%',
        'activeStudents': 0,
        'graduatedStudents': 0,
    }


def test_dashboard_stats_reflect_students(api_client, auth_headers, student_payload) -> None:
    api_client.post('/api/students', json=student_payload(status='graduated'), headers=auth_headers)
    api_client.post(
        '/api/students',
        json=student_payload(email='bob@university.edu', status='pending', course='History'),
        headers=auth_headers,
    )

    stats = api_client.get('/api/dashboard/stats', headers=auth_headers).json()

    assert stats['totalStudents'] == 2
    assert stats['activeCourses'] == 2
    assert stats['pendingApplications'] == 1
    assert stats['graduationRate'] == '50.0%'


def test_dashboard_stats_require_token(api_client) -> None:
    assert api_client.get('/api/dashboard/stats').status_code == 401
