"""
coursedesk - course record form + REST client.

The two building blocks:

    coursedesk.form.CourseInputForm   (edit + validate one course)
    coursedesk.backend.BackendService (talk to the course REST backend)
"""
