import unittest

from pcd_relay.uploads import (
    UploadedPart,
    detect_resource_type,
    folder_for_person,
    guess_content_type,
    public_id_for,
)


class FolderForPersonTests(unittest.TestCase):
    def test_uses_person_name(self):
        self.assertEqual(folder_for_person("Ana Souza"), "uploads_pcd_eventos/Ana Souza")

    def test_blank_or_missing_name_uses_default(self):
        for name in (None, "", "   "):
            self.assertEqual(folder_for_person(name), "uploads_pcd_eventos/sem-nome")

    def test_custom_root_and_default(self):
        self.assertEqual(
            folder_for_person(None, root="uploads/", default="anon"), "uploads/anon"
        )

    def test_name_cannot_escape_root(self):
        self.assertEqual(folder_for_person("../segredos"), "uploads_pcd_eventos/..-segredos")
        self.assertEqual(folder_for_person(".."), "uploads_pcd_eventos/sem-nome")
        self.assertEqual(folder_for_person("a/b\\c"), "uploads_pcd_eventos/a-b-c")


class ResourceTypeTests(unittest.TestCase):
    def test_images_and_pdfs_are_images(self):
        self.assertEqual(detect_resource_type("image/jpeg", "foto.jpg"), "image")
        self.assertEqual(detect_resource_type("application/pdf", "laudo.pdf"), "image")

    def test_media_is_video(self):
        self.assertEqual(detect_resource_type("video/mp4", "clip.mp4"), "video")
        self.assertEqual(detect_resource_type("audio/mpeg", "audio.mp3"), "video")

    def test_other_documents_are_raw(self):
        self.assertEqual(detect_resource_type("text/csv", "dados.csv"), "raw")
        self.assertEqual(
            detect_resource_type(
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "carta.docx",
            ),
            "raw",
        )

    def test_generic_content_type_is_guessed_from_extension(self):
        self.assertEqual(guess_content_type("application/octet-stream", "foto.png"), "image/png")
        self.assertEqual(detect_resource_type(None, "laudo.pdf"), "image")
        self.assertEqual(detect_resource_type("", "sem-extensao"), "raw")


class PublicIdTests(unittest.TestCase):
    def test_media_drops_extension(self):
        self.assertEqual(public_id_for("foto.perfil.png", "image"), "foto.perfil")

    def test_raw_keeps_extension(self):
        self.assertEqual(public_id_for("dados.csv", "raw"), "dados.csv")

    def test_client_paths_are_stripped(self):
        self.assertEqual(public_id_for("C:\\docs\\rg.pdf", "image"), "rg")
        self.assertEqual(public_id_for("../../etc/passwd", "raw"), "passwd")


class UploadedPartTests(unittest.TestCase):
    def test_size_is_byte_length(self):
        part = UploadedPart("rg", "rg.pdf", "application/pdf", "ção".encode("utf-8"))
        self.assertEqual(part.size, 5)


if __name__ == "__main__":
    unittest.main()
